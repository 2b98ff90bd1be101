"""
Signed, time-bounded tokens for admin sessions and the setup step.

Format: ``base64url(json payload) "." base64url(HMAC-SHA256(secret, payload part))``.
"""

import base64
import hashlib
import hmac
import json
import os
import time
from typing import Any, Dict, Optional

ADMIN_SCOPE = "admin"
SETUP_SCOPE = "setup"


def _b64u_enc(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("ascii").rstrip("=")


def _b64u_dec(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode((s + pad).encode("ascii"))


def _hmac(secret: bytes, msg: bytes) -> bytes:
    return hmac.new(secret, msg, hashlib.sha256).digest()


class TokenSigner:
    """Issues and verifies HMAC-signed tokens."""

    def __init__(self, secret: bytes) -> None:
        self._secret = secret

    def issue(
        self,
        scope: str,
        max_age: int,
        subject: str = "",
        now: Optional[float] = None,
    ) -> str:
        """
        Create a signed token.

        @param scope: What the token grants (ADMIN_SCOPE or SETUP_SCOPE)
        @param max_age: Lifetime in seconds
        @param subject: Username the token belongs to, if any
        @param now: Issue time, defaults to the current time
        @return: Token string safe to put in a cookie
        """
        issued_at = int(time.time() if now is None else now)
        payload = {
            "scope": scope,
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + int(max_age),
            "nonce": os.urandom(8).hex(),
        }
        body = _b64u_enc(
            json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        )
        signature = _b64u_enc(_hmac(self._secret, body.encode("ascii")))
        return f"{body}.{signature}"

    def verify(
        self,
        token: Optional[str],
        scope: str,
        now: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Check a token's signature, scope and expiry.

        @param token: Token string, typically from a cookie
        @param scope: Scope the token must carry
        @param now: Check time, defaults to the current time
        @return: Token payload if valid, None otherwise
        """
        if not token or token.count(".") != 1:
            return None

        body, signature = token.split(".")
        try:
            expected = _hmac(self._secret, body.encode("ascii"))
            if not hmac.compare_digest(expected, _b64u_dec(signature)):
                return None
            payload = json.loads(_b64u_dec(body))
        except (ValueError, UnicodeError):
            return None

        if not isinstance(payload, dict) or payload.get("scope") != scope:
            return None

        current = time.time() if now is None else now
        expires = payload.get("exp")
        if not isinstance(expires, int) or current >= expires:
            return None

        return payload
