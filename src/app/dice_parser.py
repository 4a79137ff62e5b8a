from __future__ import annotations

from errors import UsageError
from protocol import MIN_DICE, Die


def parse_die(spec: str) -> Die:
    parts = [p.strip() for p in spec.split(",")]
    if not spec.strip() or any(p == "" for p in parts):
        raise UsageError(f"invalid dice configuration {spec!r}: expected comma-separated integers")
    try:
        faces = tuple(int(p) for p in parts)
    except ValueError:
        raise UsageError(f"invalid dice configuration {spec!r}: expected comma-separated integers") from None
    return Die(faces)


def parse_dice(args: list[str]) -> list[Die]:
    if len(args) < MIN_DICE:
        raise UsageError(f"at least {MIN_DICE} dice configurations required, got {len(args)}")
    return [parse_die(a) for a in args]
