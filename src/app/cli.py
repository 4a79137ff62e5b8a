from __future__ import annotations

import argparse
import sys

import transcript
from commit_reveal import DEFAULT_HASH, SUPPORTED_HASHES, CommitmentGenerator, verify_commitment
from console import Console
from dice_parser import parse_dice
from errors import USAGE_EXAMPLE, EntropyFailure, ExitRequested, FairnessViolation, UsageError
from fair_exchange import ExchangeResult
from game import DEFAULT_STRATEGY, STRATEGIES, DiceGame, MatchState
from probability import format_table
from protocol import Die
from scoreboard import ScoreBoard

EXIT_FAIRNESS_VIOLATION = 3
EXIT_ENTROPY_FAILURE = 4


class DiceArgumentParser(argparse.ArgumentParser):
    # Subparsers are created with the same class, so every argparse error carries the example.
    def error(self, message: str):  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(2, f"{self.prog}: error: {message}\nExample usage: {USAGE_EXAMPLE}\n")


def main(argv: list[str] | None = None) -> int:
    parser = DiceArgumentParser(
        prog="fair-dice",
        description="Non-transitive dice against the computer, with provably fair throws.",
        epilog="Dice with negative faces go after '--', e.g. play -- -1,2,3 ...",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    play = sub.add_parser("play", help="Play a match against the computer")
    play.add_argument("dice", nargs="*", metavar="DIE", help="Comma-separated faces, e.g. 2,2,4,4,9,9")
    play.add_argument("--hash", default=DEFAULT_HASH, choices=SUPPORTED_HASHES, help="HMAC hash function")
    play.add_argument(
        "--strategy",
        default=DEFAULT_STRATEGY,
        choices=STRATEGIES,
        help="How the computer picks its die when you choose first",
    )
    play.add_argument("--rounds", type=int, default=1, help="Number of matches to play")
    play.add_argument("--transcript", default=None, help="Write revealed keys and values to this JSON file")

    table = sub.add_parser("table", help="Print the win probability table")
    table.add_argument("dice", nargs="*", metavar="DIE")

    verify = sub.add_parser("verify", help="Check a revealed key/value against its HMAC")
    verify.add_argument("--hmac", default=None)
    verify.add_argument("--key", default=None, help="Revealed key (hex)")
    verify.add_argument("--value", type=int, default=None, help="Revealed value")
    verify.add_argument("--hash", default=DEFAULT_HASH, choices=SUPPORTED_HASHES)
    verify.add_argument("--transcript", default=None, help="Verify every exchange in a saved transcript")

    args = parser.parse_args(argv)

    if args.cmd == "table":
        print(format_table(_parse_dice_or_exit(args.dice)))
        return 0

    if args.cmd == "verify":
        return _verify(args)

    if args.cmd == "play":
        return _play(args)

    raise SystemExit("unhandled command")


def _parse_dice_or_exit(specs: list[str]) -> list[Die]:
    try:
        return parse_dice(specs)
    except UsageError as exc:
        raise SystemExit(str(exc)) from None


def _play(args: argparse.Namespace) -> int:
    # Parse before touching the random source: bad input must not consume entropy.
    dice = _parse_dice_or_exit(args.dice)
    if args.rounds < 1:
        raise SystemExit("--rounds must be at least 1")

    console = Console(help_text=lambda: format_table(dice))
    game = DiceGame(dice, console, CommitmentGenerator(algorithm=args.hash), strategy=args.strategy)
    sb = ScoreBoard()
    exchanges: list[ExchangeResult] = []

    try:
        for round_no in range(1, args.rounds + 1):
            if args.rounds > 1:
                print(f"\n🎲 Match {round_no} of {args.rounds}")
            state = MatchState()
            try:
                game.play(state)
            finally:
                exchanges.extend(state.exchanges)
            sb.record(state.outcome)  # type: ignore[arg-type]
    except ExitRequested:
        print("Bye!")
        return 0
    except FairnessViolation as exc:
        print(f"FAIRNESS VIOLATION: {exc}", file=sys.stderr)
        print("The computer's reveal does not match its commitment. Do not trust this match.", file=sys.stderr)
        return EXIT_FAIRNESS_VIOLATION
    except EntropyFailure as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return EXIT_ENTROPY_FAILURE
    finally:
        if args.transcript and exchanges:
            transcript.save(args.transcript, exchanges)
            print(f"Transcript written to {args.transcript}")

    if args.rounds > 1:
        print("\nScores:\n" + sb.format_table())
    return 0


def _verify(args: argparse.Namespace) -> int:
    if args.transcript:
        try:
            exchanges = transcript.load(args.transcript)
        except OSError as exc:
            raise SystemExit(f"cannot read transcript {args.transcript}: {exc}") from None
        except (KeyError, ValueError, TypeError) as exc:
            raise SystemExit(f"invalid transcript {args.transcript}: {type(exc).__name__}: {exc}") from None
        bad = set(transcript.verify_all(exchanges))
        for i, r in enumerate(exchanges):
            status = "MISMATCH" if i in bad else "OK"
            print(f"{i:>3}  {status:<8}  0..{r.bound:<3}  value={r.own_value}  HMAC={r.digest}")
        if not exchanges:
            print("(no exchanges)")
        return EXIT_FAIRNESS_VIOLATION if bad else 0

    if args.hmac is None or args.key is None or args.value is None:
        raise SystemExit("verify needs --transcript, or all of --hmac, --key and --value")
    try:
        key = bytes.fromhex(args.key)
    except ValueError:
        raise SystemExit("--key must be hexadecimal") from None

    if verify_commitment(expected_digest=args.hmac, key=key, value=args.value, algorithm=args.hash):
        print(f"OK: HMAC matches value {args.value}")
        return 0
    print(f"MISMATCH: HMAC does not match value {args.value} under the given key")
    return EXIT_FAIRNESS_VIOLATION


if __name__ == "__main__":
    raise SystemExit(main())
