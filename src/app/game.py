from __future__ import annotations

from dataclasses import dataclass, field

from commit_reveal import CommitmentGenerator, draw_uniform
from console import Console
from fair_exchange import ExchangeResult, FairExchange
from probability import win_probability
from protocol import Die, Outcome, Party, determine_outcome

STRATEGIES = ("random", "best")
DEFAULT_STRATEGY = "random"


@dataclass
class MatchState:
    # start -> first_move -> dice_selection -> throws -> result -> end
    stage: str = "start"
    user_first: bool | None = None
    user_die: int | None = None
    computer_die: int | None = None
    user_throw: int | None = None
    computer_throw: int | None = None
    outcome: Outcome | None = None
    exchanges: list[ExchangeResult] = field(default_factory=list)


class DiceGame:
    """Runs one match: coin flip, dice selection, one throw each, result.

    Every random decision is a FairExchange where the computer commits first and
    the user's menu choice is the second contribution.
    """

    def __init__(
        self,
        dice: list[Die],
        console: Console,
        generator: CommitmentGenerator | None = None,
        *,
        strategy: str = DEFAULT_STRATEGY,
    ) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {', '.join(STRATEGIES)}")
        self.dice = dice
        self.console = console
        self.generator = generator if generator is not None else CommitmentGenerator()
        self.strategy = strategy

    def play(self, state: MatchState | None = None) -> MatchState:
        if state is None:
            state = MatchState()

        state.stage = "first_move"
        state.user_first = self._determine_first_move(state)

        state.stage = "dice_selection"
        self._select_dice(state)

        state.stage = "throws"
        order: tuple[Party, Party] = ("user", "computer") if state.user_first else ("computer", "user")
        for party in order:
            self._throw(state, party)

        state.stage = "result"
        state.outcome = determine_outcome(state.user_throw, state.computer_throw)  # type: ignore[arg-type]
        self._announce_result(state)

        state.stage = "end"
        return state

    def _determine_first_move(self, state: MatchState) -> bool:
        self.console.show("Let's determine who makes the first move.")
        result = self._exchange(
            state,
            bound=1,
            hint="Try to guess my selection.",
            reveal_label="My selection:",
        )
        # combined == 0 exactly when the guess matches the committed bit.
        return result.combined == 0

    def _select_dice(self, state: MatchState) -> None:
        available = list(range(len(self.dice)))

        if state.user_first:
            self.console.show("You make the first move. Choose your dice:")
            state.user_die = self._user_pick(available)
            available.remove(state.user_die)
            state.computer_die = self._computer_pick(available, state.user_die)
            self.console.show(f"I choose the [{self.dice[state.computer_die]}] dice.")
        else:
            state.computer_die = self._computer_pick(available, None)
            available.remove(state.computer_die)
            self.console.show(f"I make the first move and choose the [{self.dice[state.computer_die]}] dice.")
            self.console.show("Choose your dice:")
            state.user_die = self._user_pick(available)

        if state.user_die == state.computer_die:
            raise RuntimeError("both parties ended up with the same die")

    def _user_pick(self, available: list[int]) -> int:
        choice = self.console.choose([str(self.dice[i]) for i in available])
        picked = available[choice]
        self.console.show(f"You choose the [{self.dice[picked]}] dice.")
        return picked

    def _computer_pick(self, available: list[int], user_die: int | None) -> int:
        if self.strategy == "best" and user_die is not None:
            opponent = self.dice[user_die]
            return max(available, key=lambda i: win_probability(self.dice[i], opponent))
        return available[draw_uniform(len(available) - 1, self.generator.source)]

    def _throw(self, state: MatchState, party: Party) -> None:
        if party == "user":
            die = self.dice[state.user_die]  # type: ignore[index]
            self.console.show("\nIt's time for your throw.")
        else:
            die = self.dice[state.computer_die]  # type: ignore[index]
            self.console.show("\nIt's time for my throw.")

        faces = len(die)
        result = self._exchange(
            state,
            bound=faces - 1,
            hint=f"Add your number modulo {faces}.",
            reveal_label="My number is",
        )
        self.console.show(
            f"The result is {result.own_value} + {result.counterparty_value} = {result.combined} (mod {faces})."
        )
        face = die[result.combined]
        if party == "user":
            state.user_throw = face
            self.console.show(f"Your throw is {face}.")
        else:
            state.computer_throw = face
            self.console.show(f"My throw is {face}.")

    def _exchange(self, state: MatchState, *, bound: int, hint: str, reveal_label: str) -> ExchangeResult:
        with FairExchange(bound, self.generator) as exchange:
            digest = exchange.publish()
            self.console.show(f"I selected a random value in the range 0..{bound} (HMAC={digest}).")
            self.console.show(hint)
            contribution = self.console.choose([str(i) for i in range(bound + 1)])
            result = exchange.reveal(contribution)

        self.console.show(f"{reveal_label} {result.own_value} (KEY={result.key_hex}).")
        state.exchanges.append(result)
        result.ensure_fair()
        return result

    def _announce_result(self, state: MatchState) -> None:
        u, c = state.user_throw, state.computer_throw
        if state.outcome == "user_win":
            self.console.show(f"You win ({u} > {c})!")
        elif state.outcome == "computer_win":
            self.console.show(f"I win ({c} > {u})!")
        else:
            self.console.show(f"It's a tie ({u} = {c})!")
