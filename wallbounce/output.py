"""Rich console output and markdown file export for dialogue transcripts."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.rule import Rule
from rich.text import Text

from wallbounce.models import Completed, DialogueOutcome

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len] or "discussion"


def print_outcome(outcome: DialogueOutcome, first_model: str, second_model: str) -> None:
    """Print the transcript to the console using Rich markdown."""
    if isinstance(outcome, Completed):
        console.print(Rule("[bold green]Wall Bounce[/bold green]"))
    else:
        console.print(Rule("[bold yellow]Wall Bounce (stopped early)[/bold yellow]"))
    console.print(Text(f"{first_model} <-> {second_model}", style="dim"))
    console.print(Markdown(outcome.transcript))
    if not isinstance(outcome, Completed):
        console.print(f"[yellow]Stopped early:[/yellow] {outcome.error}")


def save_transcript(transcript: str, topic: str, output_dir: Path) -> Path:
    """Write the transcript markdown to a timestamped file in output_dir.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = output_dir / f"{timestamp}_{_slug(topic)}.md"
    filepath.write_text(transcript, encoding="utf-8")
    logger.info("Transcript saved to: %s", filepath)
    return filepath
