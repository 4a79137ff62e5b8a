from __future__ import annotations

import builtins
import json
import secrets
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
APP_DIR = ROOT / "src" / "app"
sys.path.insert(0, str(APP_DIR))

import cli  # type: ignore[import-not-found]  # noqa: E402
import transcript  # type: ignore[import-not-found]  # noqa: E402
from commit_reveal import compute_digest  # type: ignore[import-not-found]  # noqa: E402
from fakes import TamperingGenerator  # noqa: E402

DICE = ["2,2,4,4,9,9", "1,1,6,6,8,8", "3,3,5,5,7,7"]


def _feed_input(monkeypatch: pytest.MonkeyPatch, answers: list[str]) -> None:
    it = iter(answers)

    def fake_input(prompt: str = "") -> str:
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None

    monkeypatch.setattr(builtins, "input", fake_input)


def test_two_dice_rejected_without_entropy(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []
    real = secrets.token_bytes

    def counting(n: int) -> bytes:
        calls.append(n)
        return real(n)

    monkeypatch.setattr(secrets, "token_bytes", counting)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["play", "1,2,3", "4,5,6"])
    assert excinfo.value.code != 0
    assert "2,2,4,4,9,9 1,1,6,6,8,8 3,3,5,5,7,7" in str(excinfo.value.code)
    assert calls == []


def test_bad_die_rejected() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["play", "1,2", "x,y", "3,4"])
    assert "invalid dice configuration" in str(excinfo.value.code)


def test_table(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["table", *DICE]) == 0
    out = capsys.readouterr().out
    assert "55.56%" in out


def test_play_writes_verifiable_transcript(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    # "0" is a valid answer at every prompt whoever moves first.
    _feed_input(monkeypatch, ["0"] * 4)
    path = tmp_path / "match.json"
    assert cli.main(["play", *DICE, "--transcript", str(path)]) == 0

    exchanges = transcript.load(path)
    assert [r.bound for r in exchanges] == [1, 5, 5]
    assert transcript.verify_all(exchanges) == []
    assert cli.main(["verify", "--transcript", str(path)]) == 0

    out = capsys.readouterr().out
    assert any(word in out for word in ("You win", "I win", "It's a tie"))

    data = json.loads(path.read_text(encoding="utf-8"))
    entry = data["exchanges"][0]
    entry["value"] = 1 - entry["value"]
    path.write_text(json.dumps(data), encoding="utf-8")
    assert cli.main(["verify", "--transcript", str(path)]) == cli.EXIT_FAIRNESS_VIOLATION


def test_several_rounds_print_scores(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _feed_input(monkeypatch, ["0"] * 8)
    assert cli.main(["play", *DICE, "--rounds", "2", "--strategy", "best"]) == 0
    out = capsys.readouterr().out
    assert "Match 2 of 2" in out
    assert "Scores:" in out


def test_rounds_must_be_positive() -> None:
    with pytest.raises(SystemExit):
        cli.main(["play", *DICE, "--rounds", "0"])


def test_exit_key_ends_cleanly(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _feed_input(monkeypatch, ["X"])
    assert cli.main(["play", *DICE]) == 0
    assert "Bye!" in capsys.readouterr().out


def test_fairness_violation_exit_code(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(cli, "CommitmentGenerator", lambda algorithm: TamperingGenerator([0, 0, 0], [b"\x00"]))
    _feed_input(monkeypatch, ["0"] * 4)
    assert cli.main(["play", *DICE]) == cli.EXIT_FAIRNESS_VIOLATION
    assert "FAIRNESS VIOLATION" in capsys.readouterr().err


def test_entropy_failure_exit_code(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    def boom(n: int) -> bytes:
        raise OSError("no entropy")

    monkeypatch.setattr(secrets, "token_bytes", boom)
    assert cli.main(["play", *DICE]) == cli.EXIT_ENTROPY_FAILURE
    assert "Fatal" in capsys.readouterr().err


def test_verify_single_triple(capsys: pytest.CaptureFixture[str]) -> None:
    key = bytes(range(32))
    digest = compute_digest(key, 3)
    assert cli.main(["verify", "--hmac", digest, "--key", key.hex().upper(), "--value", "3"]) == 0
    assert cli.main(["verify", "--hmac", digest, "--key", key.hex(), "--value", "2"]) == cli.EXIT_FAIRNESS_VIOLATION
    out = capsys.readouterr().out
    assert "OK" in out
    assert "MISMATCH" in out


def test_verify_needs_arguments() -> None:
    with pytest.raises(SystemExit):
        cli.main(["verify", "--hmac", "AB"])
    with pytest.raises(SystemExit):
        cli.main(["verify", "--hmac", "AB", "--key", "zz", "--value", "1"])


def _write_transcript(path: Path, entries: object) -> None:
    path.write_text(json.dumps({"exchanges": entries}), encoding="utf-8")


def test_verify_flags_out_of_range_value_with_valid_hmac(tmp_path: Path) -> None:
    key = b"\x07" * 32
    path = tmp_path / "cheat.json"
    _write_transcript(
        path,
        [
            {
                "bound": 1,
                "value": 7,
                "counterparty_value": 9,
                "combined": 0,
                "key": key.hex(),
                "hmac": compute_digest(key, 7),
                "hash": "sha256",
            }
        ],
    )
    assert cli.main(["verify", "--transcript", str(path)]) == cli.EXIT_FAIRNESS_VIOLATION


@pytest.mark.parametrize(
    "content",
    [
        json.dumps({"exchanges": [{"bound": 1, "counterparty_value": 0, "combined": 0, "key": "00", "hmac": "AB"}]}),
        json.dumps(
            {
                "exchanges": [
                    {
                        "bound": -1,
                        "value": 0,
                        "counterparty_value": 0,
                        "combined": 0,
                        "key": "00",
                        "hmac": compute_digest(b"\x00", 0),
                    }
                ]
            }
        ),
        json.dumps({"exchanges": [{"bound": "x", "value": 0, "counterparty_value": 0, "combined": 0, "key": "00", "hmac": "AB"}]}),
        json.dumps({"exchanges": [{"bound": 1, "value": 0, "counterparty_value": 0, "combined": 0, "key": None, "hmac": "AB"}]}),
        json.dumps({"exchanges": [{"bound": 1, "value": 0, "counterparty_value": 0, "combined": 0, "key": "00", "hmac": "AB", "hash": "md5"}]}),
        json.dumps({"exchanges": ["not an object"]}),
        json.dumps([1, 2, 3]),
        "{not json",
    ],
)
def test_verify_rejects_malformed_transcript(tmp_path: Path, content: str) -> None:
    path = tmp_path / "broken.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["verify", "--transcript", str(path)])
    assert "invalid transcript" in str(excinfo.value.code)


def test_verify_missing_transcript_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["verify", "--transcript", str(tmp_path / "nope.json")])
    assert "cannot read transcript" in str(excinfo.value.code)


def test_verify_non_ascii_hmac_is_mismatch(capsys: pytest.CaptureFixture[str]) -> None:
    key = bytes(range(32))
    assert cli.main(["verify", "--hmac", "ÉÉÉÉ", "--key", key.hex(), "--value", "1"]) == cli.EXIT_FAIRNESS_VIOLATION
    assert "MISMATCH" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["1,2,3", "4,5,6", "7,8,9"],
        ["play", "--bogus", *DICE],
        ["play", *DICE, "--rounds", "many"],
    ],
)
def test_argparse_errors_show_example(argv: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code == 2
    err = capsys.readouterr().err
    assert "Example usage: fair-dice play 2,2,4,4,9,9 1,1,6,6,8,8 3,3,5,5,7,7" in err
