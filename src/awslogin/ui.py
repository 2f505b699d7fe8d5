"""Terminal front end for the login wizard.

The flow only talks to the abstract :class:`SelectionUI`: pick one of a
list, read an MFA code, show a spinner while something runs, show the
outcome. :class:`TerminalUI` implements it with Rich prompts and a Rich
status spinner on stderr, leaving stdout free for the ``--json`` outcome.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ContextManager, Optional, Protocol, Sequence

from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text

from awslogin.exceptions import AwsLoginError
from awslogin.models import AuthFlowResult
from awslogin.output import OutputFormat, get_output

TITLE = "AWS Login"


@dataclass(frozen=True)
class Choice:
    """One entry of a selection list."""

    label: str
    value: Any
    description: str = ""


class StatusHandle(Protocol):
    def update(self, status: str) -> None: ...


class SelectionUI(ABC):
    """What the flow needs from a user interface."""

    @abstractmethod
    def select(self, title: str, choices: Sequence[Choice], default: int = 0) -> Any:
        """Let the user pick one of *choices* and return its ``value``.

        Args:
            title: Heading shown above the list.
            choices: Non-empty list of entries.
            default: Index pre-selected when the user just presses Enter.
        """

    @abstractmethod
    def ask_mfa_code(self, notice: str = "") -> str:
        """Read an MFA code from the user, showing *notice* (an error) if set."""

    @abstractmethod
    def status(self, message: str) -> ContextManager[StatusHandle]:
        """Show *message* with a spinner for the duration of the block."""

    @abstractmethod
    def show_outcome(
        self,
        result: Optional[AuthFlowResult],
        error: Optional[AwsLoginError],
    ) -> None:
        """Render the final outcome of the flow."""


def outcome_text(
    result: Optional[AuthFlowResult],
    error: Optional[AwsLoginError],
) -> Text:
    """Build the single-line outcome shown when the wizard ends."""
    if error is not None:
        return Text.assemble(("✗ ", "bold red"), (str(error), "bright_black"))
    if result is None:
        return Text("Cancelled", style="yellow")

    ecr_status, ecr_style = ("yes", "magenta") if result.ecr_auth else ("no", "red")
    return Text.assemble(
        ("✓ Success", "bold green"),
        " - account [",
        (result.profile, "magenta"),
        "] - ecr [",
        (ecr_status, ecr_style),
        "]",
    )


def outcome_payload(
    result: Optional[AuthFlowResult],
    error: Optional[AwsLoginError],
) -> dict[str, Any]:
    """Machine-readable outcome for ``--json``."""
    return {
        "success": result is not None and error is None,
        "profile": result.profile if result is not None else None,
        "ecr": result.ecr_auth if result is not None else False,
        "error": str(error) if error is not None else None,
    }


class TerminalUI(SelectionUI):
    """Rich-based implementation of :class:`SelectionUI`.

    Args:
        console: Console for prompts and spinners. Defaults to the global
            output manager's stderr console.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or get_output().console

    def select(self, title: str, choices: Sequence[Choice], default: int = 0) -> Any:
        self._console.print()
        self._console.print(Text(f"{TITLE} - {title}", style="bold"))
        for index, choice in enumerate(choices, 1):
            line = Text(f"  {index}. ")
            line.append(choice.label, style="cyan")
            if choice.description:
                line.append(f"  {choice.description}", style="bright_black")
            self._console.print(line)

        answer = Prompt.ask(
            "Select",
            console=self._console,
            choices=[str(i) for i in range(1, len(choices) + 1)],
            default=str(default + 1),
            show_choices=False,
        )
        return choices[int(answer) - 1].value

    def ask_mfa_code(self, notice: str = "") -> str:
        if notice:
            self._console.print(Text(notice, style="bold red"))
        return Prompt.ask("Enter your 6-digit MFA code", console=self._console)

    def status(self, message: str) -> ContextManager[StatusHandle]:
        return self._console.status(message, spinner="dots")

    def show_outcome(
        self,
        result: Optional[AuthFlowResult],
        error: Optional[AwsLoginError],
    ) -> None:
        output = get_output()
        if output.format == OutputFormat.JSON:
            output.print_json(outcome_payload(result, error))
            return
        self._console.print(outcome_text(result, error))
