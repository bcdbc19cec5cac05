"""
Signed component state.

A component's state snapshot travels to the browser and back inside every
wire round trip. The codec makes that snapshot tamper-evident:

    token = base64url(json({id, state, timestamp})) + '.' + hex(HMAC-SHA256(secret, encoded))

Architecture invariants:
- A token is accepted only if its signature, recomputed under the codec's
  current secret, matches byte-for-byte (constant-time comparison)
- A rejected token is reported as None, never as an exception
- Rotating the secret invalidates every outstanding token; the affected
  components fall back to their zero-value state on the next request
"""

import base64
import hashlib
import hmac
import secrets
import time
from typing import Any, Dict, Optional

import orjson

from wire.logging import getLogger

TOKEN_SEPARATOR = '.'


def generateSecretKey() -> str:
    """Generate a random 256-bit secret, base64url encoded."""
    return base64.urlsafe_b64encode(secrets.token_bytes(32)).decode('ascii')


class StateCodec:
    """
    Tamper-evident serialization of component state snapshots.

    One codec per process, built from configuration at boot and shared by
    the registry and the wire handler.
    """

    def __init__(self, secretKey: str):
        if not secretKey:
            raise ValueError("StateCodec requires a non-empty secret key")
        self._secretKey = secretKey.encode('utf-8')
        self.log = getLogger()

    def setSecretKey(self, secretKey: str):
        """
        Replace the signing secret.

        Every token issued under the previous secret stops verifying.
        """
        if not secretKey:
            raise ValueError("StateCodec requires a non-empty secret key")
        self._secretKey = secretKey.encode('utf-8')
        self.log.info("[StateCodec] Secret key rotated, outstanding tokens invalidated")

    def serialize(self, componentId: str, state: Dict[str, Any]) -> str:
        """
        Encode a state snapshot into a signed token.

        Args:
            componentId: Identity of the component the state belongs to
            state: JSON-representable property snapshot

        Returns:
            '<base64url payload>.<hex signature>'
        """
        payload = {
            'id': componentId,
            'state': state,
            'timestamp': int(time.time() * 1000)
        }
        encoded = base64.urlsafe_b64encode(orjson.dumps(payload)).decode('ascii')
        return f"{encoded}{TOKEN_SEPARATOR}{self._sign(encoded)}"

    def deserialize(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify a token and return its state snapshot.

        Returns None when the token is malformed or its signature does not
        match. Callers treat None as "no state", never as an error.
        """
        parts = token.split(TOKEN_SEPARATOR) if isinstance(token, str) else []
        if len(parts) != 2:
            self.log.warning("[StateCodec] Rejected token: malformed")
            return None

        encoded, signature = parts
        if not self._verify(encoded, signature):
            self.log.warning("[StateCodec] Rejected token: invalid signature")
            return None

        payload = self._decodePayload(encoded)
        if payload is None:
            self.log.warning("[StateCodec] Rejected token: undecodable payload")
            return None

        state = payload.get('state')
        if not isinstance(state, dict):
            self.log.warning("[StateCodec] Rejected token: payload has no state")
            return None
        return state

    def extractComponentId(self, token: str) -> Optional[str]:
        """
        Read the component id from a token WITHOUT verifying its signature.

        For routing and logging only, never for trust decisions.
        """
        parts = token.split(TOKEN_SEPARATOR) if isinstance(token, str) else []
        if len(parts) != 2:
            return None

        payload = self._decodePayload(parts[0])
        if payload is None:
            return None
        componentId = payload.get('id')
        return componentId if isinstance(componentId, str) else None

    def _sign(self, encoded: str) -> str:
        """HMAC-SHA256 over the encoded payload, lowercase hex"""
        return hmac.new(self._secretKey, encoded.encode('utf-8', errors='surrogatepass'), hashlib.sha256).hexdigest()

    def _verify(self, encoded: str, signature: str) -> bool:
        expected = self._sign(encoded).encode('utf-8')
        provided = signature.encode('utf-8', errors='surrogatepass')

        # Length is not secret, only content
        if len(expected) != len(provided):
            return False
        return hmac.compare_digest(expected, provided)

    @staticmethod
    def _decodePayload(encoded: str) -> Optional[Dict[str, Any]]:
        try:
            payload = orjson.loads(base64.urlsafe_b64decode(encoded.encode('ascii')))
        except ValueError:
            # binascii.Error, UnicodeError and orjson.JSONDecodeError are all ValueErrors
            return None
        return payload if isinstance(payload, dict) else None
