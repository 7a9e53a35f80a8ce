import random
from dataclasses import dataclass, field, replace
from enum import Enum

ACE = 1
JACK = 11
QUEEN = 12
KING = 13
NUM_PER_SUIT = 13


class Suit(Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def symbol(self):
        return SUIT_SYMBOLS[self]

    @property
    def color(self):
        if self in (Suit.HEARTS, Suit.DIAMONDS):
            return "red"
        return "black"

    @staticmethod
    def fromTag(tag):
        """
        Accepts the name tag (``"hearts"``) or the symbol (``"♥"``).
        Returns None for anything else.
        """
        if not isinstance(tag, str):
            return None
        for suit in Suit:
            if tag == suit.value or tag == suit.symbol:
                return suit
        return None


SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}

NUMS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")


def isValidRank(rank) -> bool:
    return isinstance(rank, int) and not isinstance(rank, bool) and ACE <= rank <= KING


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: int
    # orientation is presentation state, not identity
    faceUp: bool = field(default=False, compare=False)

    @property
    def color(self):
        return self.suit.color

    def isRed(self):
        return self.color == "red"

    def faceUpCopy(self):
        if self.faceUp:
            return self
        return replace(self, faceUp=True)

    def faceDownCopy(self):
        if not self.faceUp:
            return self
        return replace(self, faceUp=False)

    def gameStr(self):
        if not self.faceUp:
            return "---"
        return self.suit.symbol + NUMS[self.rank - 1]

    def __str__(self):
        return self.suit.symbol + NUMS[self.rank - 1]


def createDeck(rng: random.Random = None):
    """Full 52-card deck, face-down, shuffled with ``rng`` (or the module RNG)."""
    deck = [Card(suit, rank) for suit in Suit for rank in range(ACE, KING + 1)]
    (rng or random).shuffle(deck)
    return deck
