"""JWT session token creation and verification.

Learn: Sessions are HMAC-signed JWTs carrying tenant-scoped claims:

    {"uid": <user id>, "aid": <account id>, "iss": <issued at>, "exp": <iss + 14 days>}

The wire form is header.payload.signature (base64url). The server never
stores a whole token — only its *fingerprint*, header.payload without
the signature. A leaked tokens table therefore cannot be replayed
without the secret, and lookups stay a single indexed equality match.
"""

import json
import time
from dataclasses import dataclass
from typing import Optional

import jwt

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")
DEFAULT_LIFETIME_SECONDS = 14 * 24 * 60 * 60


class TokenError(Exception):
    """Raised when token creation/verification fails."""


class SigningError(TokenError):
    """The token could not be signed (missing secret, encoder failure)."""


class InvalidSignature(TokenError):
    """Bad signature or a token that cannot be decoded at all."""


class UnexpectedAlgorithm(TokenError):
    """Header names an algorithm outside the HMAC family (including none)."""


class Expired(TokenError):
    """exp is in the past."""


class MalformedToken(TokenError):
    """Not a three-segment token, so no fingerprint can be derived."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    account_id: str
    issued_at: int
    expires_at: int


def fingerprint(token: str) -> str:
    """Return header.payload — the part of a token that is persisted."""
    pieces = token.split(".")
    if len(pieces) != 3 or not pieces[0] or not pieces[1]:
        raise MalformedToken("Token must have three segments")
    return f"{pieces[0]}.{pieces[1]}"


class TokenCodec:
    """Issues and verifies signed session tokens.

    Learn: The secret is injected rather than read from settings so that
    tests (and a future key rotation) can build codecs with any secret.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
    ):
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime_seconds = lifetime_seconds

    def issue(self, user_id: str, account_id: str, now: Optional[int] = None) -> str:
        """Create a signed token for a user within an account."""
        if not self.secret:
            raise SigningError("No signing secret configured")

        issued_at = int(now if now is not None else time.time())
        payload = {
            "uid": str(user_id),
            "aid": str(account_id),
            "iss": issued_at,
            "exp": issued_at + self.lifetime_seconds,
        }
        # "iss" carries the issue time, not an issuer name, so the payload is
        # signed as raw JWS; jwt.encode insists iss is a string.
        try:
            return jwt.api_jws.encode(
                json.dumps(payload, separators=(",", ":")).encode("utf-8"),
                self.secret,
                algorithm=self.algorithm,
                headers={"typ": "JWT"},
            )
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise SigningError(f"Could not sign token: {e}") from e

    def verify(self, token: str) -> TokenClaims:
        """Verify signature, algorithm and expiry. Returns the claims.

        Raises UnexpectedAlgorithm, InvalidSignature or Expired.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise InvalidSignature(f"Invalid token: {e}") from e

        # Checked before decoding so a forged "none" or RS256 header never
        # reaches a verifier.
        if header.get("alg") not in HMAC_ALGORITHMS:
            raise UnexpectedAlgorithm(
                f"Unexpected signing method: {header.get('alg')}"
            )

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=list(HMAC_ALGORITHMS),
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise Expired("Token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidSignature(f"Invalid token: {e}") from e

        if "uid" not in payload or "aid" not in payload:
            raise InvalidSignature("Token is missing identity claims")

        return TokenClaims(
            user_id=str(payload["uid"]),
            account_id=str(payload["aid"]),
            issued_at=int(payload.get("iss", 0)),
            expires_at=int(payload["exp"]),
        )
