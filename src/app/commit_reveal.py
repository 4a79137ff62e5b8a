from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass, field
from typing import Final

from entropy import SecureEntropySource

KEY_BYTES: Final[int] = 32
SUPPORTED_HASHES: Final[tuple[str, ...]] = ("sha256", "sha3_256")
DEFAULT_HASH: Final[str] = "sha256"


@dataclass(frozen=True)
class Commitment:
    bound: int
    digest: str
    algorithm: str = DEFAULT_HASH
    # Hidden from repr so a stray print or log line can't leak them.
    key: bytearray = field(default_factory=bytearray, repr=False)
    value: int = field(default=0, repr=False)

    def wipe(self) -> None:
        for i in range(len(self.key)):
            self.key[i] = 0

    @property
    def wiped(self) -> bool:
        return not any(self.key)


def bit_count(bound: int) -> int:
    # bound=0 still takes a 1-bit draw; 0.bit_length() would be 0.
    return max(1, bound.bit_length())


def draw_uniform(bound: int, source: SecureEntropySource) -> int:
    """Uniform integer in [0, bound] by masking random bytes and rejecting overshoots.

    At least half of the masked range is valid, so the expected number of draws
    is below two.
    """
    if bound < 0:
        raise ValueError(f"bound must be non-negative, got {bound}")
    bits = bit_count(bound)
    num_bytes = (bits + 7) // 8
    mask = (1 << bits) - 1
    while True:
        candidate = int.from_bytes(source.next_bytes(num_bytes), "big") & mask
        if candidate <= bound:
            return candidate


def canonical_message(value: int) -> bytes:
    return str(value).encode("ascii")


def compute_digest(key: bytes | bytearray, value: int, algorithm: str = DEFAULT_HASH) -> str:
    if algorithm not in SUPPORTED_HASHES:
        raise ValueError(f"unsupported hash {algorithm!r}, expected one of {', '.join(SUPPORTED_HASHES)}")
    return hmac.new(bytes(key), canonical_message(value), algorithm).hexdigest().upper()


def verify_commitment(
    *,
    expected_digest: str,
    key: bytes | bytearray,
    value: int,
    algorithm: str = DEFAULT_HASH,
) -> bool:
    computed = compute_digest(key, value, algorithm)
    try:
        expected = expected_digest.upper().encode("ascii")
    except UnicodeEncodeError:
        return False
    return secrets.compare_digest(expected, computed.encode("ascii"))


def build_commitment(
    *,
    key: bytes | bytearray,
    value: int,
    bound: int,
    algorithm: str = DEFAULT_HASH,
) -> Commitment:
    if not 0 <= value <= bound:
        raise ValueError(f"value {value} outside 0..{bound}")
    return Commitment(
        bound=bound,
        digest=compute_digest(key, value, algorithm),
        algorithm=algorithm,
        key=bytearray(key),
        value=value,
    )


class CommitmentGenerator:
    def __init__(self, source: SecureEntropySource | None = None, algorithm: str = DEFAULT_HASH) -> None:
        if algorithm not in SUPPORTED_HASHES:
            raise ValueError(f"unsupported hash {algorithm!r}")
        self.source = source if source is not None else SecureEntropySource()
        self.algorithm = algorithm

    def commit(self, bound: int) -> Commitment:
        """Pick a uniform value in [0, bound] and bind it to a fresh 256-bit key."""
        value = draw_uniform(bound, self.source)
        key = self.source.next_bytes(KEY_BYTES)
        return build_commitment(key=key, value=value, bound=bound, algorithm=self.algorithm)
