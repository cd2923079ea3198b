"""Deck engine: builds, validates and shuffles decks."""

from collections.abc import Mapping, Sequence
from random import Random
from typing import Any

from core.cards import CARD_TITLES, CARD_VALUES, Card, Deck, Rank, Suit
from core.errors import ValidationError


def _card_fields(card: Any) -> tuple[str, str] | None:
    """Return (title, value) when both are strings, else None."""
    if isinstance(card, Card):
        title, value = card.title, card.value
    elif isinstance(card, Mapping):
        title, value = card.get("title"), card.get("value")
    else:
        return None
    if not isinstance(title, str) or not isinstance(value, str):
        return None
    return title, value


class DeckEngine:
    """Creates and shuffles decks, and validates externally supplied ones."""

    def __init__(self, rng: Random | None = None) -> None:
        """
        Initialize the deck engine.

        Args:
            rng: Random number generator used for shuffling
        """
        self._rng = rng or Random()
        self._deck: Deck | None = None

    @property
    def deck(self) -> Deck | None:
        """Return the current deck, if one was created."""
        return self._deck

    def create_new(self, decks_amount: int = 1) -> Deck:
        """Build ``decks_amount`` standard 52-card sets in suit/rank order."""
        if isinstance(decks_amount, bool) or not isinstance(decks_amount, int) or decks_amount < 1:
            raise ValidationError(f"Decks amount should be a positive integer, got {decks_amount!r}")

        single_deck = tuple(Card.of(rank, suit) for suit in Suit for rank in Rank)
        self._deck = Deck(single_deck * decks_amount)
        return self._deck

    def create_from_source(self, source_deck: Any) -> Deck:
        """Validate and adopt an external card sequence as the current deck."""
        self.is_deck_correct(source_deck)

        self._deck = Deck(
            tuple(
                card if isinstance(card, Card) else Card.from_record(card)
                for card in source_deck
            )
        )
        return self._deck

    def shuffle(self) -> Deck:
        """Shuffle the current deck into a fresh permutation."""
        if self._deck is None:
            raise ValidationError("Deck should be defined")
        self.is_deck_correct(self._deck.cards)

        cards = list(self._deck.cards)
        # random.shuffle is a Fisher-Yates shuffle
        self._rng.shuffle(cards)

        self._deck = Deck(tuple(cards))
        return self._deck

    @staticmethod
    def calculate_weight(card_value: str, ace_low: bool = False) -> int:
        """Return the point value of a rank label; unknown labels weigh 0."""
        try:
            rank = Rank(card_value)
        except ValueError:
            return 0
        return rank.weight(ace_low)

    def is_deck_correct(self, deck: Any) -> None:
        """
        Validate a deck, raising ValidationError on any problem.

        Every unknown title, unknown value and title/value mismatch is
        reported in a single error.
        """
        if deck is None:
            raise ValidationError("Deck should be defined")

        if isinstance(deck, (str, bytes, Mapping)) or not isinstance(deck, (Sequence, Deck)):
            raise ValidationError("Deck should be a sequence")

        if not len(deck):
            raise ValidationError("Deck is empty")

        fields = [_card_fields(card) for card in deck]
        invalid_cards = [card for card, pair in zip(deck, fields) if pair is None]
        if invalid_cards:
            raise ValidationError(
                "Cards in deck are invalid: " + ", ".join(repr(card) for card in invalid_cards)
            )

        unknown_titles = [title for title, _ in fields if title not in CARD_TITLES]
        unknown_values = [value for _, value in fields if value not in CARD_VALUES]
        mismatched = [
            f"title: {title} and value: {value}"
            for title, value in fields
            if title.split(" ")[0] != value
        ]

        problems = []
        if unknown_titles:
            problems.append(f"Unknown card titles: {', '.join(unknown_titles)}")
        if unknown_values:
            problems.append(f"Unknown card values: {', '.join(unknown_values)}")
        if mismatched:
            problems.append(f"Mismatched cards: {', '.join(mismatched)}")

        if problems:
            raise ValidationError("; ".join(problems))
