from __future__ import annotations

USAGE_EXAMPLE = "fair-dice play 2,2,4,4,9,9 1,1,6,6,8,8 3,3,5,5,7,7"


class UsageError(ValueError):
    """Bad command-line input. Reported with an example, no game is started."""

    def __str__(self) -> str:
        return f"Error: {super().__str__()}\nExample usage: {USAGE_EXAMPLE}"


class InputValidationError(ValueError):
    """Bad interactive input. The console re-prompts instead of propagating it."""


class ExitRequested(Exception):
    """The user asked to quit from a prompt."""


class ProtocolStateError(RuntimeError):
    """A fair exchange was driven out of order (e.g. secret read before reveal)."""


class FairnessViolation(Exception):
    """A revealed key/value pair does not reproduce the published digest,
    or the revealed values break the exchange's range."""

    def __init__(self, *, digest: str, recomputed: str, value: int, reason: str | None = None) -> None:
        self.digest = digest
        self.recomputed = recomputed
        self.value = value
        self.reason = reason
        if reason is None:
            reason = "does not match the published HMAC"
        super().__init__(f"revealed value {value} {reason} (published={digest}, recomputed={recomputed})")


class EntropyFailure(RuntimeError):
    """The OS random source could not produce bytes."""
