from base.Core import Core, GameEvent


class Interface:
    """
    Observer of a Core. Register several with Core.registerInterface.
    """

    def __init__(self):
        self.core: Core = None

    def onStart(self):
        pass

    def onEvent(self, event: GameEvent):
        """
        Invoked when a game event is performed.
        :param event:
        :return:
        """
        self.notifyRedraw()

    def onChange(self, fields: frozenset):
        """
        Invoked once per committed mutation.
        :param fields: names of the changed board fields, e.g. {"stock", "waste", "moveCount"}
        """
        pass

    def notifyRedraw(self):
        pass

    def onWin(self, moves: int, elapsed: float):
        pass

    def onStalemate(self):
        pass
