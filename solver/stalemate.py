from base import Rules


def _first_foundation_for(core, card):
    for i, foundation in enumerate(core.foundations):
        if Rules.canPlaceOnFoundation(card, Rules.topOf(foundation)):
            return i
    return None


def _tableau_target_for(core, card):
    for i, column in enumerate(core.tableau):
        if Rules.canPlaceOnTableau(card, Rules.topOf(column)):
            return i
    return None


def has_legal_move(core) -> bool:
    """
    Short-circuits on the first available move. An empty stock with a non-empty
    waste still counts as a move, since the waste can always be recycled.
    """
    if len(core.stock) > 0:
        return True
    if len(core.waste) > 0:
        return True

    waste_top = Rules.topOf(core.waste)
    if waste_top is not None:
        if _first_foundation_for(core, waste_top) is not None:
            return True
        if _tableau_target_for(core, waste_top) is not None:
            return True

    for column in core.tableau:
        top = Rules.topOf(column)
        if top is not None and top.faceUp and _first_foundation_for(core, top) is not None:
            return True

    for src, column in enumerate(core.tableau):
        for start, card in enumerate(column):
            if not card.faceUp or not Rules.isMovableRun(column, start):
                continue
            for dest, target in enumerate(core.tableau):
                if dest == src:
                    continue
                if Rules.canPlaceOnTableau(card, Rules.topOf(target)):
                    return True
    return False


def is_stalemate(core) -> bool:
    return not core.gameWon and not has_legal_move(core)
