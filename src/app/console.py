from __future__ import annotations

from typing import Callable

from errors import ExitRequested, InputValidationError

EXIT_KEY = "X"
HELP_KEY = "?"


def parse_choice(raw: str, max_value: int) -> int:
    text = raw.strip()
    try:
        value = int(text)
    except ValueError:
        raise InputValidationError(f"{text!r} is not a number") from None
    if not 0 <= value <= max_value:
        raise InputValidationError(f"{value} is out of range")
    return value


class Console:
    """Numbered-menu prompts with X (exit) and ? (help) on every menu."""

    def __init__(
        self,
        *,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
        help_text: Callable[[], str] | None = None,
    ) -> None:
        self.input_fn = input_fn
        self.output_fn = output_fn
        self.help_text = help_text

    def show(self, text: str = "") -> None:
        self.output_fn(text)

    def choose(self, options: list[str], prompt: str = "Your selection: ") -> int:
        """Index of the picked option. Raises ExitRequested on X or end of input."""
        for i, option in enumerate(options):
            self.show(f"{i} - {option}")
        self.show(f"{EXIT_KEY} - exit")
        self.show(f"{HELP_KEY} - help")

        while True:
            try:
                raw = self.input_fn(prompt)
            except EOFError:
                raise ExitRequested() from None

            key = raw.strip().upper()
            if key == EXIT_KEY:
                raise ExitRequested()
            if key == HELP_KEY:
                self._show_help()
                continue

            try:
                return parse_choice(raw, len(options) - 1)
            except InputValidationError as exc:
                self.show(f"❌ {exc}. Please enter a number between 0 and {len(options) - 1}, {EXIT_KEY} or {HELP_KEY}.")

    def _show_help(self) -> None:
        if self.help_text is None:
            self.show("No help available here.")
            return
        self.show("\nProbability of the win for the user:")
        self.show(self.help_text())
        self.show()
