"""Interactive menus: numbered choices read from a single input stream."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, TextIO, TypeVar

import click
from rich.console import Console

from vacu_vrt.models.config import BrowserPlatform, Environment, TestMode
from vacu_vrt.url_utils import is_valid_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHOICE_PROMPT = "Enter your choice (number): "
CUSTOM_URL_PROMPT = "Enter custom URL (e.g., https://example.com): "


class InputClosedError(EOFError):
    """Raised when the input stream ends while a prompt is waiting."""


def parse_choice(answer: str, count: int) -> Optional[int]:
    """Return the 1-based choice if answer is a number in 1..count."""
    try:
        choice = int(answer.strip())
    except ValueError:
        return None
    if 1 <= choice <= count:
        return choice
    return None


class Prompter:
    """Line-oriented prompt reader.

    Acquire once per command with ``with Prompter() as prompter:`` so the
    reader is released on every exit path, including ``sys.exit``.
    Closing never closes the underlying stream.
    """

    def __init__(self, stream: Optional[TextIO] = None, console: Optional[Console] = None):
        self._stream = stream if stream is not None else click.get_text_stream("stdin")
        self.console = console or Console()
        self.closed = False

    def __enter__(self) -> "Prompter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Stop reading and drop the reference to the input stream.

        The stream is borrowed (stdin, or whatever the caller passed in) and
        is left open for its owner.
        """
        if not self.closed:
            self.closed = True
            self._stream = None
            logger.debug("Prompt reader closed")

    def ask(self, question: str) -> str:
        """Print question and return one trimmed line of input."""
        if self.closed:
            raise RuntimeError("Prompter is closed")
        self.console.print(question, end="", markup=False, highlight=False)
        line = self._stream.readline()
        if not line:
            raise InputClosedError("Input stream closed while waiting for an answer")
        return line.strip()

    def confirm(self, question: str) -> bool:
        answer = self.ask(question).lower()
        return answer in ("y", "yes")

    def error(self, message: str) -> None:
        self.console.print(f"❌ {message}", markup=False, highlight=False)

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def _print_menu(self, prompt_text: str, heading: str, lines: Sequence[str]) -> None:
        self.console.print(f"\n{prompt_text}", markup=False, highlight=False)
        self.console.print(heading, markup=False, highlight=False)
        for line in lines:
            self.console.print(line, markup=False, highlight=False)
        self.console.print("")

    def _choose(
        self, prompt_text: str, heading: str, options: Sequence[T], describe,
    ) -> T:
        if not options:
            raise ValueError("No options to choose from")
        lines = []
        for i, option in enumerate(options, 1):
            lines.extend(describe(i, option))
        while True:
            self._print_menu(prompt_text, heading, lines)
            choice = parse_choice(self.ask(CHOICE_PROMPT), len(options))
            if choice is not None:
                return options[choice - 1]
            self.error("Invalid choice. Please enter a number from the list.")

    def select_test_mode(self, modes: Sequence[TestMode], prompt_text: str) -> TestMode:
        return self._choose(
            prompt_text, "Available test modes:", modes,
            lambda i, m: [f"  {i}. {m.name}", f"     {m.description}"],
        )

    def select_browser_platform(
        self, platforms: Sequence[BrowserPlatform], prompt_text: str,
    ) -> BrowserPlatform:
        return self._choose(
            prompt_text, "Available browser platforms:", platforms,
            lambda i, p: [f"  {i}. {p.name}", f"     {p.description}"],
        )

    def select_environment(
        self, environments: Sequence[Environment], prompt_text: str,
    ) -> Environment:
        """Pick a configured environment, or the trailing "Custom URL" entry."""
        if not environments:
            raise ValueError("No environments configured")
        custom_index = len(environments) + 1
        lines = [f"  {i}. {env.name} ({env.host})" for i, env in enumerate(environments, 1)]
        lines.append(f"  {custom_index}. Custom URL")

        while True:
            self._print_menu(prompt_text, "Available environments:", lines)
            choice = parse_choice(self.ask(CHOICE_PROMPT), custom_index)
            if choice is None:
                self.error("Invalid choice. Please enter a number from the list.")
                continue
            if choice < custom_index:
                return environments[choice - 1]

            custom_url = self.ask(CUSTOM_URL_PROMPT)
            if not is_valid_url(custom_url):
                self.error(
                    "Invalid URL format. Please enter a valid URL starting with "
                    "http:// or https://"
                )
                continue
            return Environment.custom(custom_url)
