from base.Card import Card, Suit, isValidRank
from base.Core import FOUNDATION_COUNT, TABLEAU_COUNT, Core
from base.logging_utils import get_logger

logger = get_logger(__name__)


def encodeCard(card: Card):
    return {"suit": card.suit.value, "rank": card.rank, "isFaceUp": card.faceUp}


def decodeCard(data):
    """
    :return: the card, or None when the entry is malformed
    """
    if not isinstance(data, dict):
        return None
    suit = Suit.fromTag(data.get("suit"))
    rank = data.get("rank")
    if suit is None or not isValidRank(rank):
        return None
    faceUp = data.get("isFaceUp")
    return Card(suit, rank, faceUp if isinstance(faceUp, bool) else False)


def encodeStack(stack):
    return [encodeCard(card) for card in stack]


def decodeStack(data):
    if not isinstance(data, list):
        return []
    cards = []
    for entry in data:
        card = decodeCard(entry)
        if card is None:
            logger.debug("dropping malformed card entry %r", entry)
            continue
        cards.append(card)
    return cards


def decodeColumns(data, count):
    columns = [[] for _ in range(count)]
    if not isinstance(data, list):
        return columns
    for i, column in enumerate(data[:count]):
        columns[i] = decodeStack(column)
    return columns


def encodeBoard(core: Core):
    return {
        "stock": encodeStack(core.stock),
        "waste": encodeStack(core.waste),
        "tableau": [encodeStack(column) for column in core.tableau],
        "foundations": [encodeStack(foundation) for foundation in core.foundations],
        "moves": core.moveCount,
        "gameWon": core.gameWon,
        "startTime": core.startTime,
        "noMovesLeft": core.noMovesLeft,
    }


def _asCount(value):
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(0, value)


def _asFlag(value):
    return value if isinstance(value, bool) else False


def _asTimestamp(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def decodeBoard(data) -> Core:
    """
    Never fails: malformed cards are dropped and missing scalars take their defaults.
    The stalemate flag is restored as saved but Core.resumeGame recomputes it.
    """
    core = Core()
    if not isinstance(data, dict):
        return core
    core.stock = decodeStack(data.get("stock"))
    core.waste = decodeStack(data.get("waste"))
    core.tableau = decodeColumns(data.get("tableau"), TABLEAU_COUNT)
    core.foundations = decodeColumns(data.get("foundations"), FOUNDATION_COUNT)
    core.moveCount = _asCount(data.get("moves"))
    core.gameWon = _asFlag(data.get("gameWon"))
    core.startTime = _asTimestamp(data.get("startTime"))
    core.noMovesLeft = _asFlag(data.get("noMovesLeft"))
    return core
