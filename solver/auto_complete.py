from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from base import Rules
from base.Card import Card

TABLEAU_SOURCE = "tableau"
WASTE_SOURCE = "waste"


@dataclass(frozen=True, slots=True)
class AutoMove:
    """One foundation placement performed by the auto-completion loop."""

    source: str
    source_index: int
    card: Card
    foundation: int

    def to_notation(self) -> str:
        if self.source == WASTE_SOURCE:
            return f"W->F{self.foundation} {self.card}"
        return f"T{self.source_index}->F{self.foundation} {self.card}"


def can_auto_complete(core) -> bool:
    """Every tableau card face-up and the stock empty; the waste may hold cards."""
    if core.gameWon or len(core.stock) > 0:
        return False
    for column in core.tableau:
        for card in column:
            if not card.faceUp:
                return False
    return True


def _first_foundation(core, card: Card) -> Optional[int]:
    for i, foundation in enumerate(core.foundations):
        if Rules.canPlaceOnFoundation(card, Rules.topOf(foundation)):
            return i
    return None


def next_auto_move(core) -> Optional[AutoMove]:
    """Tableau columns first, in index order, then the waste top."""
    for col, column in enumerate(core.tableau):
        top = Rules.topOf(column)
        if top is None or not top.faceUp:
            continue
        foundation = _first_foundation(core, top)
        if foundation is not None:
            return AutoMove(TABLEAU_SOURCE, col, top, foundation)
    top = Rules.topOf(core.waste)
    if top is not None:
        foundation = _first_foundation(core, top)
        if foundation is not None:
            return AutoMove(WASTE_SOURCE, -1, top, foundation)
    return None


def iter_auto_complete(core, cancelled: Callable[[], bool] | None = None) -> Iterator[AutoMove]:
    """
    Applies one relocation per step and yields it, so the caller controls pacing.
    Stops when no move is found, the game is won, or ``cancelled()`` turns true.
    The board lock is only held while a single relocation is applied.
    """
    while True:
        if cancelled is not None and cancelled():
            return
        with core.mutation():
            if core.gameWon:
                return
            move = next_auto_move(core)
            if move is None:
                return
            core.doMoveToFoundation(move.card, move.foundation, auto=True)
        yield move


def run_auto_complete(core) -> list[AutoMove]:
    return list(iter_auto_complete(core))
