"""Bearer tokens for players, signed with itsdangerous."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from api.table import get_orchestrator
from config import config
from core.errors import NotFoundError
from core.game import TurnOrchestrator
from core.models import Player

BEARER_PREFIX = "Bearer "


class TokenSigner:
    """Sign and verify player tokens using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the signer with a secret key."""
        self._secret_key = secret_key or config.security.secret_key
        self._serializer = URLSafeTimedSerializer(self._secret_key, salt="player-token")

    def sign(self, email: str) -> str:
        """Create a signed token carrying a player email."""
        return self._serializer.dumps(email)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract the email from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to the token TTL)

        Returns:
            The email if valid, None otherwise
        """
        max_age = max_age or config.security.token_ttl
        try:
            return self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None


# Global signer instance
_token_signer: TokenSigner | None = None


def get_token_signer() -> TokenSigner:
    """Get or create the token signer."""
    global _token_signer
    if _token_signer is None:
        _token_signer = TokenSigner()
    return _token_signer


def extract_email(token: str | None) -> str | None:
    """Return the email of a token, or None when missing or invalid."""
    if not token:
        return None
    return get_token_signer().unsign(token)


async def current_player(
    orchestrator: Annotated[TurnOrchestrator, Depends(get_orchestrator)],
    authorization: Annotated[str | None, Header()] = None,
) -> Player:
    """Resolve the player from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Unauthorized")

    email = extract_email(authorization[len(BEARER_PREFIX):])
    if email is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        return await orchestrator.find_player(email)
    except NotFoundError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc
