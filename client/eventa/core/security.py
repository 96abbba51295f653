"""
Caller identity derived from the bearer credential.

The token is decoded once, when a session starts, and the resulting context is
handed to the components that need it. Signatures are not verified here: the
backend verifies every request, the client only needs the claims.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Self

import jwt

from eventa.core.errors import ErrorCode, IdentityError

NO_TOKEN_MESSAGE = "No token found. Please log in again."
INVALID_TOKEN_MESSAGE = "Invalid token. Please log in again."
MISSING_USER_ID_MESSAGE = "Organizer ID is missing. Please log in again."


def decode_token(token: str) -> dict[str, Any]:
    """Decode a JWT without signature verification. Expired tokens are rejected."""
    try:
        return jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError as exc:
        raise IdentityError(
            "Session expired. Please log in again.", code=ErrorCode.IDENTITY_INVALID
        ) from exc
    except jwt.PyJWTError as exc:
        raise IdentityError(INVALID_TOKEN_MESSAGE, code=ErrorCode.IDENTITY_INVALID) from exc


@dataclass(frozen=True)
class IdentityContext:
    """Who is calling, as stated by the credential."""

    token: str
    user_id: Optional[str] = None
    role: Optional[str] = None
    fullname: Optional[str] = None
    email: Optional[str] = None
    claims: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_token(cls, token: Optional[str]) -> Self:
        """
        Build the context from a raw bearer token.

        Raises:
            IdentityError: If the token is absent, malformed or expired.
        """
        if token and token.lower().startswith("bearer "):
            token = token[len("bearer "):]
        if not token or not token.strip():
            raise IdentityError(NO_TOKEN_MESSAGE)
        token = token.strip()

        claims = decode_token(token)
        user = claims.get("user") if isinstance(claims.get("user"), dict) else {}

        user_id = user.get("id") or user.get("_id") or claims.get("sub")
        return cls(
            token=token,
            user_id=str(user_id) if user_id is not None else None,
            role=user.get("role") or claims.get("role"),
            fullname=user.get("fullname"),
            email=user.get("email"),
            claims=claims,
        )

    def require_user_id(self) -> str:
        if not self.user_id:
            raise IdentityError(MISSING_USER_ID_MESSAGE)
        return self.user_id

    @property
    def auth_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
