import random
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass

from base import Rules
from base.Card import ACE, NUM_PER_SUIT, Card, createDeck
from base.logging_utils import get_logger
from solver.evaluator import Evaluator

TABLEAU_COUNT = 7
FOUNDATION_COUNT = 4
DRAW_COUNT = 3

STOCK = "stock"
WASTE = "waste"
TABLEAU = "tableau"
FOUNDATION = "foundation"

ALL_FIELDS = frozenset({"stock", "waste", "tableau", "foundations", "moveCount", "gameWon", "noMovesLeft"})

logger = get_logger(__name__)


class GameContractError(ValueError):
    """The engine was called with arguments no legal game flow can produce."""


@dataclass(frozen=True)
class Destination:
    kind: str
    index: int

    @staticmethod
    def tableau(index):
        return Destination(TABLEAU, index)

    @staticmethod
    def foundation(index):
        return Destination(FOUNDATION, index)


class GameConfig:
    def __init__(self):
        self.seed = None
        self.autoComplete = True
        self.asyncEvaluation = False
        # seconds between two auto-completion relocations, asynchronous evaluation only
        self.autoCompleteDelay = 0.0


class GameEvent:
    def isAuto(self) -> bool:
        return False


class DrawCards(GameEvent):
    def __init__(self, count: int):
        self.count = count


class RecycleWaste(GameEvent):
    def __init__(self, count: int):
        self.count = count


class CardMove(GameEvent):
    def __init__(self, src: (int, int), dest: (int, int), count: int):
        self.src = src
        self.dest = dest
        self.count = count


class WasteToTableau(GameEvent):
    def __init__(self, card: Card, dest: (int, int)):
        self.card = card
        self.dest = dest


class ToFoundation(GameEvent):
    def __init__(self, card: Card, source: (str, int), foundation: int, auto=False):
        self.card = card
        self.source = source
        self.foundation = foundation
        self.auto = auto

    def isAuto(self):
        return self.auto


class RevealTop(GameEvent):
    def __init__(self, idx):
        self.idx = idx

    def isAuto(self):
        return True


class Core:
    """
    ask*** : a player request, validated against the rules; returns whether it was applied.
    do*** : the actual operation; the caller has validated it, misuse raises GameContractError.

    Every committed operation notifies the registered interfaces and then requests a
    stalemate / auto-completion evaluation.
    """
    DEFAULT_CONFIG = GameConfig()

    def __init__(self):
        self.interfaces = []
        self.config = Core.DEFAULT_CONFIG

        self.stock = []
        self.waste = []
        self.tableau = [[] for _ in range(TABLEAU_COUNT)]
        self.foundations = [[] for _ in range(FOUNDATION_COUNT)]
        self.moveCount = 0
        self.gameWon = False
        self.noMovesLeft = False
        self.startTime = None

        # serializes every mutation; evaluations run once the outermost one releases it
        self.lock = threading.RLock()
        self._mutationDepth = 0
        self._evaluationQueued = False
        self.evaluator = Evaluator(self)

    @contextmanager
    def mutation(self):
        """
        Holds the board lock. Evaluations requested inside are deferred until the
        outermost mutation has released the lock.
        """
        with self.lock:
            self._mutationDepth += 1
            try:
                yield self
            finally:
                self._mutationDepth -= 1
            flush = self._mutationDepth == 0 and self._evaluationQueued
            if flush:
                self._evaluationQueued = False
        if flush:
            self.evaluator.request()

    def registerInterface(self, interface):
        self.interfaces.append(interface)
        interface.core = self

    def unregisterInterface(self, interface):
        if interface in self.interfaces:
            self.interfaces.remove(interface)

    def startGame(self, gameConfig: GameConfig = DEFAULT_CONFIG):
        with self.mutation():
            self.config = gameConfig
            rng = random.Random(gameConfig.seed) if gameConfig.seed is not None else None
            deck = createDeck(rng)

            self.stock = []
            self.waste = []
            self.tableau = [[] for _ in range(TABLEAU_COUNT)]
            self.foundations = [[] for _ in range(FOUNDATION_COUNT)]
            self.moveCount = 0
            self.gameWon = False
            self.noMovesLeft = False
            self.startTime = time.time()

            idx = 0
            for col in range(TABLEAU_COUNT):
                for row in range(col + 1):
                    card = deck[idx]
                    if row == col:
                        card = card.faceUpCopy()
                    self.tableau[col].append(card)
                    idx += 1
            self.stock = deck[idx:]

            logger.info("new game dealt (seed=%s)", gameConfig.seed)
            for interface in list(self.interfaces):
                interface.onStart()
            self._commit(ALL_FIELDS)

    def resumeGame(self):
        with self.mutation():
            # the persisted flag is not authoritative
            self.noMovesLeft = False
            logger.info("resuming game at move %d", self.moveCount)
            for interface in list(self.interfaces):
                interface.onStart()
            if not self.gameWon and self.checkWin():
                self._notifyChange({"gameWon", "noMovesLeft"})
            self.requestEvaluation()

    def allCards(self):
        cards = list(self.stock) + list(self.waste)
        for column in self.tableau:
            cards.extend(column)
        for foundation in self.foundations:
            cards.extend(foundation)
        return cards

    def locate(self, card: Card):
        """
        :return: (pile kind, pile index, index in pile), or None when the card is not on the board
        """
        for i, c in enumerate(self.waste):
            if c == card:
                return WASTE, -1, i
        for col, column in enumerate(self.tableau):
            for i, c in enumerate(column):
                if c == card:
                    return TABLEAU, col, i
        for f, foundation in enumerate(self.foundations):
            for i, c in enumerate(foundation):
                if c == card:
                    return FOUNDATION, f, i
        for i, c in enumerate(self.stock):
            if c == card:
                return STOCK, -1, i
        return None

    def elapsedSeconds(self, now=None) -> float:
        if self.startTime is None:
            return 0.0
        if now is None:
            now = time.time()
        return max(0.0, now - self.startTime)

    def checkWin(self):
        if self.gameWon:
            return True
        for foundation in self.foundations:
            if len(foundation) != NUM_PER_SUIT:
                return False
        self.gameWon = True
        self.noMovesLeft = False
        elapsed = self.elapsedSeconds()
        logger.info("game won in %d moves, %.1fs", self.moveCount, elapsed)
        for interface in list(self.interfaces):
            interface.onWin(self.moveCount, elapsed)
        return True

    def findAvailableFoundationForAce(self, card: Card):
        if card.rank != ACE:
            return None
        for i, foundation in enumerate(self.foundations):
            if len(foundation) == 0:
                return i
        return None

    def askDraw(self) -> bool:
        with self.mutation():
            if self.gameWon:
                return False
            if len(self.stock) > 0:
                self.doDraw()
                return True
            if len(self.waste) > 0:
                self.doRecycle()
                return True
            self.requestEvaluation()
            return False

    def askMove(self, card: Card, destination: Destination) -> bool:
        with self.mutation():
            if destination.kind == FOUNDATION:
                return self.askMoveToFoundation(card, destination.index)
            if destination.kind != TABLEAU:
                raise GameContractError(f"unknown destination kind {destination.kind!r}")
            dest = destination.index
            self.__checkColumn(dest)
            if self.gameWon:
                return False
            location = self.locate(card)
            if location is None:
                return False
            (kind, pile, idx) = location
            target = Rules.topOf(self.tableau[dest])
            if kind == WASTE and idx == len(self.waste) - 1:
                if not Rules.canPlaceOnTableau(self.waste[idx], target):
                    return False
                self.doMoveWasteToTableau(dest)
                return True
            if kind == TABLEAU:
                if pile == dest:
                    raise GameContractError(f"card {card} is already in column {dest}")
                column = self.tableau[pile]
                if not Rules.isMovableRun(column, idx):
                    return False
                if not Rules.canPlaceOnTableau(column[idx], target):
                    return False
                self.doMoveRun(pile, idx, dest)
                return True
            return False

    def askMoveToFoundation(self, card: Card, foundationIndex: int) -> bool:
        with self.mutation():
            self.__checkFoundation(foundationIndex)
            if self.gameWon:
                return False
            target = foundationIndex
            if card.rank == ACE and len(self.foundations[target]) > 0:
                available = self.findAvailableFoundationForAce(card)
                if available is not None:
                    target = available
            if self.__singleSource(card) is None:
                return False
            if not Rules.canPlaceOnFoundation(card, Rules.topOf(self.foundations[target])):
                return False
            self.doMoveToFoundation(card, target)
            return True

    def doDraw(self):
        with self.mutation():
            self.__ensurePlaying()
            if len(self.stock) == 0:
                raise GameContractError("cannot draw from an empty stock")
            count = min(DRAW_COUNT, len(self.stock))
            drawn = self.stock[-count:]
            del self.stock[-count:]
            # the card nearest the stock top ends up on top of the waste
            self.waste.extend(card.faceUpCopy() for card in drawn)
            self.moveCount += 1
            logger.debug("drew %d card(s), stock=%d waste=%d", count, len(self.stock), len(self.waste))
            self._notifyEvent(DrawCards(count))
            self._commit({"stock", "waste", "moveCount"})

    def doRecycle(self):
        with self.mutation():
            self.__ensurePlaying()
            if len(self.stock) > 0 or len(self.waste) == 0:
                raise GameContractError("recycling needs an empty stock and a non-empty waste")
            count = len(self.waste)
            self.stock = [card.faceDownCopy() for card in reversed(self.waste)]
            self.waste = []
            logger.debug("recycled %d card(s) into the stock", count)
            self._notifyEvent(RecycleWaste(count))
            self._commit({"stock", "waste"})

    def doMoveToFoundation(self, card: Card, foundationIndex: int, auto=False):
        with self.mutation():
            self.__ensurePlaying()
            self.__checkFoundation(foundationIndex)
            source = self.__singleSource(card)
            if source is None:
                raise GameContractError(f"card {card} is not on top of the waste or of a column")
            foundation = self.foundations[foundationIndex]
            if not Rules.canPlaceOnFoundation(card, Rules.topOf(foundation)):
                raise GameContractError(f"card {card} cannot go on foundation {foundationIndex}")

            (kind, col) = source
            if kind == WASTE:
                placed = self.waste.pop()
                fields = {"waste"}
            else:
                placed = self.tableau[col].pop()
                fields = {"tableau"}
            foundation.append(placed.faceUpCopy())
            self.moveCount += 1
            fields.update(("foundations", "moveCount"))
            logger.debug("%s -> foundation %d (from %s %d)", placed, foundationIndex, kind, col)
            self._notifyEvent(ToFoundation(placed, source, foundationIndex, auto))
            if kind == TABLEAU:
                self.__revealTop(col)
            if self.checkWin():
                fields.update(("gameWon", "noMovesLeft"))
            self._commit(fields)

    def doMoveRun(self, src: int, startIndex: int, dest: int):
        with self.mutation():
            self.__ensurePlaying()
            self.__checkColumn(src)
            self.__checkColumn(dest)
            if src == dest:
                raise GameContractError("source and destination column are the same")
            column = self.tableau[src]
            if startIndex < 0 or startIndex >= len(column):
                raise GameContractError(f"index {startIndex} out of range for column {src}")
            if not Rules.isMovableRun(column, startIndex):
                raise GameContractError(f"cards from {src}:{startIndex} do not form a movable run")
            destColumn = self.tableau[dest]
            if not Rules.canPlaceOnTableau(column[startIndex], Rules.topOf(destColumn)):
                raise GameContractError(f"run from {src}:{startIndex} cannot go on column {dest}")

            run = column[startIndex:]
            del column[startIndex:]
            destPair = (dest, len(destColumn))
            destColumn.extend(run)
            self.moveCount += 1
            logger.debug("moved %d card(s) %d:%d -> %d", len(run), src, startIndex, dest)
            self._notifyEvent(CardMove((src, startIndex), destPair, len(run)))
            self.__revealTop(src)
            self._commit({"tableau", "moveCount"})

    def doMoveWasteToTableau(self, dest: int):
        with self.mutation():
            self.__ensurePlaying()
            self.__checkColumn(dest)
            if len(self.waste) == 0:
                raise GameContractError("the waste is empty")
            destColumn = self.tableau[dest]
            card = self.waste[-1]
            if not Rules.canPlaceOnTableau(card, Rules.topOf(destColumn)):
                raise GameContractError(f"card {card} cannot go on column {dest}")
            self.waste.pop()
            destPair = (dest, len(destColumn))
            destColumn.append(card)
            self.moveCount += 1
            logger.debug("%s waste -> column %d", card, dest)
            self._notifyEvent(WasteToTableau(card, destPair))
            self._commit({"waste", "tableau", "moveCount"})

    def updateStalemate(self, stuck: bool):
        """
        Edge-triggered: onStalemate fires once when the board enters stalemate.
        """
        with self.mutation():
            stuck = stuck and not self.gameWon
            if stuck == self.noMovesLeft:
                return
            self.noMovesLeft = stuck
            if stuck:
                logger.info("no legal moves left after %d moves", self.moveCount)
                for interface in list(self.interfaces):
                    interface.onStalemate()
            self._notifyChange({"noMovesLeft"})

    def requestEvaluation(self):
        with self.mutation():
            self._evaluationQueued = True

    def _notifyEvent(self, event: GameEvent):
        for interface in list(self.interfaces):
            interface.onEvent(event)

    def _notifyChange(self, fields):
        fields = frozenset(fields)
        for interface in list(self.interfaces):
            interface.onChange(fields)

    def _commit(self, fields):
        self._notifyChange(fields)
        self.requestEvaluation()

    def __revealTop(self, col: int):
        column = self.tableau[col]
        if len(column) == 0 or column[-1].faceUp:
            return False
        column[-1] = column[-1].faceUpCopy()
        self._notifyEvent(RevealTop(col))
        return True

    def __singleSource(self, card: Card):
        """
        Where a single card can be picked up from: the waste top or a face-up column top.
        """
        if len(self.waste) > 0 and self.waste[-1] == card:
            return WASTE, -1
        for col, column in enumerate(self.tableau):
            if len(column) > 0 and column[-1] == card and column[-1].faceUp:
                return TABLEAU, col
        return None

    def __ensurePlaying(self):
        if self.gameWon:
            raise GameContractError("the game is already won")

    @staticmethod
    def __checkColumn(col):
        if not isinstance(col, int) or col < 0 or col >= TABLEAU_COUNT:
            raise GameContractError(f"no tableau column {col!r}")

    @staticmethod
    def __checkFoundation(idx):
        if not isinstance(idx, int) or idx < 0 or idx >= FOUNDATION_COUNT:
            raise GameContractError(f"no foundation {idx!r}")
