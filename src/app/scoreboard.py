from __future__ import annotations

from dataclasses import dataclass

from protocol import Outcome


@dataclass
class ScoreBoard:
    """Per-session tally. Lives only as long as the process."""

    user_wins: int = 0
    computer_wins: int = 0
    ties: int = 0

    def record(self, outcome: Outcome) -> None:
        if outcome == "user_win":
            self.user_wins += 1
        elif outcome == "computer_win":
            self.computer_wins += 1
        else:
            self.ties += 1

    @property
    def played(self) -> int:
        return self.user_wins + self.computer_wins + self.ties

    def format_table(self) -> str:
        if not self.played:
            return "(no games yet)"

        lines: list[str] = []
        header = f"{'matches':>7}  {'you':>4}  {'me':>4}  {'ties':>4}"
        lines.append(header)
        lines.append("-" * len(header))
        lines.append(f"{self.played:>7}  {self.user_wins:>4}  {self.computer_wins:>4}  {self.ties:>4}")
        return "\n".join(lines)
