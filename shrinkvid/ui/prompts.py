from typing import Optional
from rich.console import Console
from shrinkvid.domain.errors import PromptIOError

class Prompter:
    """Asks the operator y/n questions on the console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def confirm(self, question: str) -> bool:
        """Only a 'y' (any case) counts as yes; anything else is no."""
        try:
            answer = self.console.input(f"[bold yellow]?[/] {question} (y/n): ")
        except (EOFError, OSError) as e:
            raise PromptIOError(f"Failed to read answer: {e!r}") from e
        return answer.strip().lower() == "y"
