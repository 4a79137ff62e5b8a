from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Outcome = Literal["user_win", "computer_win", "tie"]
Party = Literal["user", "computer"]

MIN_DICE = 3


@dataclass(frozen=True)
class Die:
    faces: tuple[int, ...]

    def __post_init__(self) -> None:
        if not self.faces:
            raise ValueError("a die needs at least one face")

    def __len__(self) -> int:
        return len(self.faces)

    def __getitem__(self, index: int) -> int:
        return self.faces[index]

    def __str__(self) -> str:
        return ",".join(str(f) for f in self.faces)


def determine_outcome(user_throw: int, computer_throw: int) -> Outcome:
    if user_throw == computer_throw:
        return "tie"
    return "user_win" if user_throw > computer_throw else "computer_win"
