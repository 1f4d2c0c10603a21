"""
Rich-based user prompts
"""
from typing import List, Optional

from rich.console import Console
from rich.prompt import Prompt

from ...core.interfaces import PromptProvider
from ...core.logging import get_stdout_console


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_stdout_console()

    def choose(self, message: str, choices: List[str], default: str) -> str:
        """Ask the user to pick one of several choices"""
        return Prompt.ask(message, choices=choices, default=default, console=self.console)
