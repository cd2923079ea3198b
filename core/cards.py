"""Card and Deck value objects."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator


class Suit(Enum):
    """Card suits, in deck creation order."""

    HEARTS = "Hearts"
    DIAMONDS = "Diamonds"
    CLUBS = "Clubs"
    SPADES = "Spades"

    def __str__(self) -> str:
        return self.value


class Rank(Enum):
    """Card ranks, valued by their label."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "Jack"
    QUEEN = "Queen"
    KING = "King"
    ACE = "Ace"

    def __str__(self) -> str:
        return self.value

    def weight(self, ace_low: bool = False) -> int:
        """Return the point value (Ace = 11, or 1 when ace_low; face cards = 10)."""
        if self == Rank.ACE:
            return 1 if ace_low else 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)


def card_title(rank: Rank, suit: Suit) -> str:
    """Build the canonical title, e.g. '10 of Hearts'."""
    return f"{rank} of {suit}"


CARD_TITLES = frozenset(card_title(rank, suit) for suit in Suit for rank in Rank)
CARD_VALUES = frozenset(rank.value for rank in Rank)


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card.

    ``value`` holds the rank label. A card built from untrusted data is not
    guaranteed to be canonical until it has passed ``DeckEngine.is_deck_correct``.
    """

    title: str
    value: str

    def __str__(self) -> str:
        return self.title

    @classmethod
    def of(cls, rank: Rank, suit: Suit) -> "Card":
        """Create a canonical card."""
        return cls(title=card_title(rank, suit), value=rank.value)

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "Card":
        """Create a card from a stored ``{"title", "value"}`` mapping."""
        return cls(title=data["title"], value=data["value"])

    def to_record(self) -> dict[str, str]:
        return {"title": self.title, "value": self.value}

    @property
    def rank(self) -> Rank:
        """Return the rank enum (ValueError for unknown values)."""
        return Rank(self.value)


@dataclass(frozen=True, slots=True)
class Deck:
    """Immutable ordered sequence of cards. The top of the deck is index 0.

    Every operation returns a new Deck; no holder ever sees another one's edit.
    """

    cards: tuple[Card, ...] = ()

    def draw(self) -> tuple[Card, "Deck"]:
        """Take the top card, returning it together with the remaining deck."""
        if not self.cards:
            raise IndexError("Cannot draw from empty deck")
        return self.cards[0], Deck(self.cards[1:])

    def put_back(self, card: Card) -> "Deck":
        """Return a deck with ``card`` on top."""
        return Deck((card,) + self.cards)

    def to_records(self) -> list[dict[str, str]]:
        return [card.to_record() for card in self.cards]

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __getitem__(self, index: int) -> Card:
        return self.cards[index]
