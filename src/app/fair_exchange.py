from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from commit_reveal import Commitment, CommitmentGenerator, compute_digest, verify_commitment
from errors import FairnessViolation, ProtocolStateError


class Phase(Enum):
    COMMITTED = "committed"
    AWAITING_COUNTERPARTY = "awaiting_counterparty"
    REVEALED = "revealed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ExchangeResult:
    bound: int
    own_value: int
    counterparty_value: int
    combined: int
    revealed_key: bytes
    digest: str
    algorithm: str

    @property
    def modulus(self) -> int:
        return self.bound + 1

    @property
    def key_hex(self) -> str:
        return self.revealed_key.hex().upper()

    @property
    def in_range(self) -> bool:
        return (
            self.bound >= 0
            and 0 <= self.own_value <= self.bound
            and 0 <= self.counterparty_value <= self.bound
            and self.combined == (self.own_value + self.counterparty_value) % self.modulus
        )

    def verify(self) -> bool:
        """Digest matches the revealed key/value and both values respect the bound."""
        if not self.in_range:
            return False
        return verify_commitment(
            expected_digest=self.digest,
            key=self.revealed_key,
            value=self.own_value,
            algorithm=self.algorithm,
        )

    def ensure_fair(self) -> None:
        if not self.verify():
            raise FairnessViolation(
                digest=self.digest,
                recomputed=compute_digest(self.revealed_key, self.own_value, self.algorithm),
                value=self.own_value,
                reason=None if self.in_range else f"is outside 0..{self.bound} or does not combine correctly",
            )


class FairExchange:
    """One commit/reveal draw over [0, bound].

    Construction commits. publish() hands out the digest only; reveal() takes the
    counterparty's contribution and is the only way to see the committed value
    and key. Use it as a context manager so an early exit wipes the key.
    """

    def __init__(self, bound: int, generator: CommitmentGenerator) -> None:
        self.bound = bound
        self._commitment: Commitment | None = generator.commit(bound)
        self._digest = self._commitment.digest
        self.result: ExchangeResult | None = None
        self.phase = Phase.COMMITTED

    def __enter__(self) -> "FairExchange":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.phase is not Phase.REVEALED:
            self.abort()

    @property
    def digest(self) -> str:
        return self._digest

    @property
    def committed_value(self) -> int:
        if self.result is None:
            raise ProtocolStateError(f"committed value is sealed until reveal (phase={self.phase.value})")
        return self.result.own_value

    def publish(self) -> str:
        if self.phase is not Phase.COMMITTED:
            raise ProtocolStateError(f"cannot publish in phase {self.phase.value}")
        self.phase = Phase.AWAITING_COUNTERPARTY
        return self.digest

    def reveal(self, counterparty_value: int) -> ExchangeResult:
        if self.phase is not Phase.AWAITING_COUNTERPARTY or self._commitment is None:
            raise ProtocolStateError(f"cannot reveal in phase {self.phase.value}")
        if not 0 <= counterparty_value <= self.bound:
            raise ValueError(f"counterparty value {counterparty_value} outside 0..{self.bound}")

        commitment = self._commitment
        result = ExchangeResult(
            bound=self.bound,
            own_value=commitment.value,
            counterparty_value=counterparty_value,
            combined=(commitment.value + counterparty_value) % (self.bound + 1),
            revealed_key=bytes(commitment.key),
            digest=commitment.digest,
            algorithm=commitment.algorithm,
        )
        commitment.wipe()
        self._commitment = None
        self.result = result
        self.phase = Phase.REVEALED
        return result

    def abort(self) -> None:
        if self._commitment is not None:
            self._commitment.wipe()
            self._commitment = None
        if self.phase is not Phase.REVEALED:
            self.phase = Phase.ABORTED
