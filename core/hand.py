"""Hand totals and winner selection."""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from core.deck import DeckEngine

BLACKJACK = 21


def _card_value(card: Any) -> Any:
    if isinstance(card, Mapping):
        return card.get("value")
    return card.value


def calculate_total(cards: Iterable[Any]) -> int:
    """
    Calculate a hand total.

    Aces count 11. When that busts, the whole hand is recounted with every
    ace worth 1 (not one ace at a time). A hand without aces stays busted.
    """
    values = [_card_value(card) for card in cards]
    if not values:
        return 0

    total = sum(DeckEngine.calculate_weight(value) for value in values)
    if total > BLACKJACK:
        total = sum(DeckEngine.calculate_weight(value, ace_low=True) for value in values)
    return total


@dataclass(frozen=True)
class HandResult:
    """A seat's hand summarized for winner selection."""

    id: str
    email: str
    total: int
    cards_total: int


@dataclass(frozen=True)
class WinnerCandidates:
    """Possible winners with the totals they were selected on.

    ``max_total`` and ``max_cards_total`` are ``-inf`` when every hand busted.
    """

    possible_winners: tuple[HandResult, ...]
    max_total: float
    max_cards_total: float


def possible_winners(players: Iterable[Any]) -> WinnerCandidates:
    """
    Select the non-busted hands tied for the highest total.

    A tie on total is narrowed to the hands holding the most cards.
    """
    results = [
        HandResult(
            id=player.id,
            email=player.email,
            total=calculate_total(player.cards),
            cards_total=len(player.cards),
        )
        for player in players
    ]
    survivors = [result for result in results if result.total <= BLACKJACK]

    max_total = max((result.total for result in survivors), default=-math.inf)
    candidates = [result for result in survivors if result.total == max_total]
    max_cards_total = max((result.cards_total for result in candidates), default=-math.inf)

    if len(candidates) > 1:
        candidates = [result for result in candidates if result.cards_total == max_cards_total]

    return WinnerCandidates(
        possible_winners=tuple(candidates),
        max_total=max_total,
        max_cards_total=max_cards_total,
    )


def dealer_wins(candidates: WinnerCandidates, dealer_total: int, dealer_cards_total: int) -> bool:
    """
    Compare the dealer against the possible winners.

    The dealer takes a tie on total when it got there with fewer cards.
    """
    if candidates.max_total < dealer_total:
        return True
    return candidates.max_total == dealer_total and dealer_cards_total < candidates.max_cards_total
