import copy
from dataclasses import dataclass

from base import Rules
from base.Card import Card
from base.Core import Core, Destination, GameConfig, GameContractError
from base.Interface import Interface
from base.logging_utils import get_logger, setup_logging
from session import game_store, settings_store

logger = get_logger(__name__)


@dataclass(frozen=True)
class WinReport:
    moves: int
    elapsed: float
    score: int


class GameSession(Interface):
    """
    Entry point for a presentation layer.

    Observes the board it drives: every committed mutation is saved to ``store``,
    a win is reported to ``stats`` and removes the saved record.
    """

    def __init__(self, store: game_store.KeyValueStore = None, stats=None, config: GameConfig = None):
        super().__init__()
        self.store = store if store is not None else game_store.default_store()
        self.stats = stats
        self.config = config if config is not None else GameConfig()
        self.lastWin: WinReport = None
        self.stalemateReached = False

    @staticmethod
    def fromSettings(settings, stats=None):
        setup_logging(settings_store.log_level(settings))
        store = game_store.JsonFileStore(settings_store.save_dir(settings))
        return GameSession(store=store, stats=stats, config=settings_store.to_game_config(settings))

    def newGame(self, seed=None) -> Core:
        previous = self.core
        if previous is not None:
            previous.unregisterInterface(self)
            if not previous.gameWon and previous.moveCount > 0:
                logger.info("abandoning game after %d moves", previous.moveCount)
                if self.stats is not None:
                    self.stats.game_abandoned(previous.moveCount)
        self.clearSaved()

        config = copy.copy(self.config)
        config.seed = seed
        core = Core()
        core.registerInterface(self)
        self.lastWin = None
        self.stalemateReached = False
        if self.stats is not None:
            self.stats.game_started()
        core.startGame(config)
        return core

    def loadSavedGame(self) -> Core | None:
        return game_store.load_game(self.store)

    def resumeSavedGame(self) -> Core | None:
        core = self.loadSavedGame()
        if core is None:
            return None
        if self.core is not None:
            self.core.unregisterInterface(self)
        config = copy.copy(self.config)
        config.seed = None
        core.config = config
        core.registerInterface(self)
        self.lastWin = None
        self.stalemateReached = False
        core.resumeGame()
        return core

    def hasSavedGame(self) -> bool:
        return game_store.has_saved_game(self.store)

    def drawFromStock(self) -> bool:
        return self.__requireGame().askDraw()

    def requestMove(self, card: Card, destination: Destination) -> bool:
        return self.__requireGame().askMove(card, destination)

    def save(self, core: Core = None) -> bool:
        core = core if core is not None else self.core
        if core is None:
            return False
        return game_store.save_game(core, self.store)

    def clearSaved(self) -> bool:
        return game_store.clear_game(self.store)

    def onChange(self, fields):
        if self.core.gameWon:
            self.clearSaved()
        else:
            self.save()

    def onWin(self, moves, elapsed):
        score = Rules.calculateScore(moves, elapsed, True)
        self.lastWin = WinReport(moves, elapsed, score)
        if self.stats is not None:
            self.stats.game_won(moves, elapsed, score)

    def onStalemate(self):
        self.stalemateReached = True

    def __requireGame(self) -> Core:
        if self.core is None:
            raise GameContractError("no game in progress")
        return self.core
