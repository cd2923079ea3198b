"""Error types raised by the table engine."""


class BlackjackError(Exception):
    """Base class for all table errors."""


class ValidationError(BlackjackError, ValueError):
    """Malformed deck, card or player data."""


class NotFoundError(BlackjackError, LookupError):
    """Unknown game, player or email."""


class StateConflictError(BlackjackError):
    """Action not allowed in the current table state."""


class RuleViolationError(BlackjackError):
    """Action breaks a game rule (e.g. hitting a busted hand)."""
