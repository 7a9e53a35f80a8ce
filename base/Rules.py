from base.Card import ACE, KING, Card


def topOf(pile):
    if len(pile) == 0:
        return None
    return pile[-1]


def canPlaceOnTableau(card: Card, target: Card = None) -> bool:
    """
    :param card: the card (or the first card of a run) being placed
    :param target: the top card of the destination column, None for an empty column
    """
    if target is None:
        return card.rank == KING
    return card.rank == target.rank - 1 and card.isRed() != target.isRed()


def canPlaceOnFoundation(card: Card, top: Card = None) -> bool:
    if top is None:
        return card.rank == ACE
    return card.suit == top.suit and card.rank == top.rank + 1


def movableRun(column, startIndex):
    """
    Cards from ``startIndex`` until the descending, alternating-color chain breaks.
    Face-up state is not checked here, see ``isMovableRun``.
    """
    if startIndex < 0 or startIndex >= len(column):
        return []
    run = [column[startIndex]]
    for i in range(startIndex + 1, len(column)):
        previous = column[i - 1]
        current = column[i]
        if current.rank != previous.rank - 1 or current.isRed() == previous.isRed():
            break
        run.append(current)
    return run


def isMovableRun(column, startIndex) -> bool:
    if startIndex < 0 or startIndex >= len(column):
        return False
    if len(movableRun(column, startIndex)) != len(column) - startIndex:
        return False
    for card in column[startIndex:]:
        if not card.faceUp:
            return False
    return True


def calculateScore(moves: int, seconds: float, gameWon: bool) -> int:
    if not gameWon:
        return 0
    score = 1000
    score += max(0, 1000 - int(seconds // 60) * 10)
    score -= max(0, moves - 100) * 2
    return max(0, score)
