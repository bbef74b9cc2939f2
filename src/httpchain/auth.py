"""
Token verifiers for AuthMiddleware.

The middleware treats verification as an opaque capability:

    verify(token) -> True or (True, None)             accept
    verify(token) -> False, (_, error), or raises      reject (401)

Two implementations ship with the package:

- JWTVerifier: signed JSON Web Tokens, checked with PyJWT.
- StaticTokenVerifier: a fixed set of opaque API tokens.

Requires the ``PyJWT`` package::

    pip install PyJWT
"""

import hmac
import logging
import time
from typing import Any, Dict, Iterable, Optional, Protocol, Sequence, Tuple, Union

import jwt

from .errors import TokenVerificationError

logger = logging.getLogger(__name__)


class TokenVerifier(Protocol):
    """Anything AuthMiddleware can ask "is this token valid?"."""

    def verify(self, token: str) -> Union[bool, Tuple[bool, Optional[Exception]]]:
        ...


class JWTVerifier:
    """Verify HMAC- or key-signed JWTs.

    Usage::

        verifier = JWTVerifier(secret="s3cret")
        token = verifier.issue({"sub": "alice"}, expires_in=3600)
        verifier.verify(token)          # True
        verifier.verify(token + "x")    # raises TokenVerificationError
    """

    def __init__(
        self,
        secret: str,
        algorithms: Sequence[str] = ("HS256",),
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
        leeway: float = 0,
    ) -> None:
        if not secret:
            raise ValueError("JWTVerifier requires a non-empty secret")
        if not algorithms:
            raise ValueError("JWTVerifier requires at least one algorithm")
        self._secret = secret
        self._algorithms = list(algorithms)
        self._audience = audience
        self._issuer = issuer
        self._leeway = leeway

    @property
    def algorithms(self) -> Sequence[str]:
        return tuple(self._algorithms)

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify *token* and return its claims.

        Raises :class:`TokenVerificationError` on any failure.
        """
        if not token:
            raise TokenVerificationError("Empty token")

        options: Dict[str, Any] = {}
        kwargs: Dict[str, Any] = {
            "algorithms": self._algorithms,
            "leeway": self._leeway,
            "options": options,
        }
        if self._audience:
            kwargs["audience"] = self._audience
        else:
            options["verify_aud"] = False
        if self._issuer:
            kwargs["issuer"] = self._issuer

        try:
            return jwt.decode(token, self._secret, **kwargs)
        except jwt.exceptions.ExpiredSignatureError as exc:
            raise TokenVerificationError("Token has expired") from exc
        except jwt.exceptions.InvalidTokenError as exc:
            raise TokenVerificationError(f"Invalid token: {exc}") from exc

    def verify(self, token: str) -> bool:
        self.decode(token)
        return True

    def issue(self, claims: Dict[str, Any], expires_in: Optional[float] = None) -> str:
        """Sign *claims* with the first configured algorithm.

        ``iat`` is always set; ``exp`` when *expires_in* is given, and
        ``aud`` / ``iss`` when the verifier is configured with them.
        """
        now = int(time.time())
        payload = dict(claims)
        payload.setdefault("iat", now)
        if expires_in is not None:
            payload["exp"] = now + int(expires_in)
        if self._audience:
            payload.setdefault("aud", self._audience)
        if self._issuer:
            payload.setdefault("iss", self._issuer)
        return jwt.encode(payload, self._secret, algorithm=self._algorithms[0])


class StaticTokenVerifier:
    """Accept a fixed set of opaque tokens.

    Comparison is constant-time per candidate. An empty token is never
    valid, even if an empty string was configured.
    """

    def __init__(self, tokens: Iterable[str]) -> None:
        self._tokens = tuple(t for t in tokens if t)
        if not self._tokens:
            logger.warning("StaticTokenVerifier created with no tokens; every request will be rejected")

    def verify(self, token: str) -> bool:
        if not token:
            return False
        candidate = token.encode("utf-8")
        matched = False
        for known in self._tokens:
            if hmac.compare_digest(candidate, known.encode("utf-8")):
                matched = True
        return matched
