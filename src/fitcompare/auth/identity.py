"""
Verification of identity-provider ID tokens.

Sign-in, password and e-mail flows all happen at the provider; the browser
sends the resulting ID token as ``Authorization: Bearer <token>``. We only
check the signature and claims and pull out who the caller is:

    {
        "sub": "provider-user-id",
        "email": "rider@example.com",
        "email_verified": true,
        "aud": "...", "iss": "...", "exp": ...
    }
"""
from dataclasses import dataclass
from typing import Optional

import jwt

# ── Exceptions ────────────────────────────────────────────────────────────────

class InvalidTokenError(RuntimeError):
    """Raised when a bearer token is missing, malformed, expired or forged."""


class EmailNotVerifiedError(RuntimeError):
    """Raised when the token is valid but the account e-mail is unverified."""


# ── Main class ────────────────────────────────────────────────────────────────

@dataclass
class Identity:
    subject: str
    email: Optional[str] = None
    email_verified: bool = False


class IdentityVerifier:
    """
    Checks ID tokens against the provider's signing key.

    Usage:
        verifier = IdentityVerifier(key="...", audience="fit-compare")
        identity = verifier.verify(token)
    """

    def __init__(
        self,
        key: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
        require_verified_email: bool = True,
    ):
        self._key = key
        self._algorithm = algorithm
        self._audience = audience
        self._issuer = issuer
        self._require_verified_email = require_verified_email

    def verify(self, token: str) -> Identity:
        """
        Decode and validate ``token``.

        Raises:
            InvalidTokenError: bad signature, expired, wrong audience/issuer
                or no subject.
            EmailNotVerifiedError: if verified e-mail is required and the
                token says it isn't.
        """
        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_aud": self._audience is not None},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(f"Invalid identity token: {exc}") from exc

        subject = claims.get("sub")
        if not subject:
            raise InvalidTokenError("Identity token has no subject")

        identity = Identity(
            subject=str(subject),
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
        )
        if self._require_verified_email and not identity.email_verified:
            raise EmailNotVerifiedError(
                f"E-mail not verified for account {identity.subject}"
            )
        return identity
