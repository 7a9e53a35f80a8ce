from dataclasses import dataclass


@dataclass(frozen=True)
class CardView:
    suit: str
    rank: int
    face_up: bool
    label: str


@dataclass(frozen=True)
class PileView:
    cards: tuple[CardView, ...]


@dataclass(frozen=True)
class GameViewModel:
    stock_count: int
    waste: PileView
    tableau: tuple[PileView, ...]
    foundations: tuple[PileView, ...]
    moves: int
    game_won: bool
    no_moves_left: bool


@dataclass(frozen=True)
class AnimationEvent:
    type: str
    payload: dict
