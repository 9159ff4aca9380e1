"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class WebhookSignatureVerifier(Protocol):
    """Verifies that a webhook body was signed by the gateway.

    Implementations hold the shared secret and must compare over the exact
    bytes received, before any parsing. `verify` returns False on a mismatch
    and raises a BusinessException when it cannot check at all (no secret).
    """

    provider: str

    def verify(self, body: bytes, signature: str | None) -> bool: ...
