"""
User Prompts

The controller never talks to a UI toolkit directly. Alerts and
confirmations go through a UserPromptInterface so the same controller
runs under Streamlit, in tests, or anywhere else.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from ledger_client.models.state import LedgerState


class UserPromptInterface(ABC):
    """Blocking-style prompts shown to the user."""

    @abstractmethod
    def alert(self, message: str) -> None:
        """Show an error or notice the user has to acknowledge."""
        pass

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Ask a yes/no question; True means go ahead."""
        pass


class StatePrompt(UserPromptInterface):
    """
    Prompt that records alerts in the ledger state for the next render.

    Confirmation cannot block in a page-per-rerun UI, so the answer is
    set ahead of time (e.g. from an "Are you sure?" checkbox) via
    `confirm_answer`. When `confirm_hint` is set, a declined
    confirmation leaves that hint in the messages so the user knows why
    nothing happened.
    """

    def __init__(
        self,
        get_state: Callable[[], LedgerState],
        confirm_answer: bool = False,
        confirm_hint: Optional[str] = None,
    ):
        self._get_state = get_state
        self.confirm_answer = confirm_answer
        self.confirm_hint = confirm_hint
        self.last_question: Optional[str] = None

    def alert(self, message: str) -> None:
        self._get_state().messages.append(message)

    def confirm(self, message: str) -> bool:
        self.last_question = message
        if not self.confirm_answer and self.confirm_hint:
            self.alert(self.confirm_hint)
        return self.confirm_answer
