"""Player-facing projection of a game."""

from typing import Any, Iterable

from core.hand import calculate_total
from core.models import Game, Player

HIDDEN_CARD = {"title": "*", "value": "*"}
HIDDEN_TOTAL = "-"


def player_view(player: Player) -> dict[str, Any]:
    """Convert a player to a dictionary, with its hand total."""
    return {**player.to_record(), "total": calculate_total(player.cards)}


def game_view(game: Game, players: Iterable[Player]) -> dict[str, Any]:
    """
    Convert a game to its public dictionary.

    While a seat holds the turn, the dealer's first card is masked and its
    total hidden.
    """
    turn_active = game.player_id_turn is not None

    dealer_cards = [
        HIDDEN_CARD if turn_active and index == 0 else card.to_record()
        for index, card in enumerate(game.dealer_cards)
    ]

    return {
        "id": game.id,
        "player_id_turn": game.player_id_turn,
        "winner_ids": list(game.winner_ids),
        "dealer_cards": dealer_cards,
        "dealer_total": HIDDEN_TOTAL if turn_active else calculate_total(game.dealer_cards),
        "players": [player_view(player) for player in players],
        "ready_to_deal": not game.dealer_cards or not turn_active,
    }
