"""
JWT session signer adapter - Implements SessionSigner protocol.

Uses PyJWT for stateless bearer tokens. Tokens are not tracked
server-side: logout does not revoke them, they stay valid until exp.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from otpgate.domain.exceptions import InvalidToken

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


class JwtSessionSigner:
    """
    Implements SessionSigner protocol via HMAC-signed JWTs.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256") -> None:
        """
        Raises:
            ValueError: If algorithm is not an HMAC algorithm or the key is empty
        """
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported JWT algorithm: {algorithm}")
        if not secret_key:
            raise ValueError("JWT secret key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """
        Create a signed token carrying claims.

        Args:
            claims: Identity claims (id, email, user_type)
            ttl: Validity window from now

        Returns:
            The encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {**claims, "sub": str(claims["id"]), "iat": now, "exp": now + ttl}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def validate(self, token: str) -> dict[str, Any]:
        """
        Decode and verify a token.

        Raises:
            InvalidToken: If the token has expired or its signature is invalid
        """
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("token expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidToken("token invalid") from e
