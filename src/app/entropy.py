from __future__ import annotations

import secrets

from errors import EntropyFailure


class SecureEntropySource:
    """Bytes from the OS CSPRNG. Not seedable."""

    def next_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("n must be non-negative")
        try:
            return secrets.token_bytes(n)
        except (OSError, NotImplementedError) as exc:
            raise EntropyFailure(f"secure random source unavailable: {exc}") from exc
