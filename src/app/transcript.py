from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from commit_reveal import DEFAULT_HASH, SUPPORTED_HASHES
from fair_exchange import ExchangeResult


def to_dict(result: ExchangeResult) -> dict[str, Any]:
    return {
        "bound": result.bound,
        "hmac": result.digest,
        "hash": result.algorithm,
        "key": result.key_hex,
        "value": result.own_value,
        "counterparty_value": result.counterparty_value,
        "combined": result.combined,
    }


def from_dict(entry: dict[str, Any]) -> ExchangeResult:
    bound = int(entry["bound"])
    if bound < 0:
        raise ValueError(f"bound must be non-negative, got {bound}")
    algorithm = str(entry.get("hash", DEFAULT_HASH))
    if algorithm not in SUPPORTED_HASHES:
        raise ValueError(f"unsupported hash {algorithm!r}")
    return ExchangeResult(
        bound=bound,
        own_value=int(entry["value"]),
        counterparty_value=int(entry["counterparty_value"]),
        combined=int(entry["combined"]),
        revealed_key=bytes.fromhex(entry["key"]),
        digest=str(entry["hmac"]),
        algorithm=algorithm,
    )


def save(path: str | Path, exchanges: list[ExchangeResult]) -> None:
    p = Path(path)
    payload = {"exchanges": [to_dict(r) for r in exchanges]}
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def load(path: str | Path) -> list[ExchangeResult]:
    """Raises ValueError (including json.JSONDecodeError), KeyError or TypeError on a malformed file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not isinstance(data.get("exchanges", []), list):
        raise ValueError("expected an object with an 'exchanges' list")
    exchanges: list[ExchangeResult] = []
    for i, entry in enumerate(data.get("exchanges", [])):
        if not isinstance(entry, dict):
            raise ValueError(f"exchange {i} is not an object")
        exchanges.append(from_dict(entry))
    return exchanges


def verify_all(exchanges: list[ExchangeResult]) -> list[int]:
    """Indices of exchanges whose digest, range or combined value doesn't check out."""
    return [i for i, r in enumerate(exchanges) if not r.verify()]
