"""Terminal rendering for scicalc.

Builds rich renderables for the calculator screen and the history, memory
and settings panels:
- Long expressions are truncated for list views
- History is listed newest first, keyed by its recall index
- Errors replace the main display text and are shown in red
"""

from typing import List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .history import HistoryEntry
from .memory import MemoryStore
from .session import DisplayState
from .settings import Settings

EXPRESSION_MAX_LENGTH = 30
NO_HISTORY_TEXT = "No calculations yet"


def truncate_text(text: str, max_length: int = EXPRESSION_MAX_LENGTH, suffix: str = "...") -> str:
    """Truncate text to max length with suffix.

    Args:
        text: Text to truncate.
        max_length: Maximum length including suffix.
        suffix: Suffix to add when truncated.

    Returns:
        Truncated text or original if within limit.
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def history_table(entries: List[HistoryEntry], title: str = "History") -> Table:
    """Table of history entries, newest first.

    The index column is the entry's position in the log (0 = oldest), which is
    what `history show` and recall take.
    """
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right", width=3)
    table.add_column("Expression", style="white")
    table.add_column("Result", style="green", justify="right")
    table.add_column("Time", style="dim")

    for index, entry in reversed(list(enumerate(entries))):
        table.add_row(
            str(index),
            truncate_text(entry.expression),
            entry.formatted_result,
            entry.timestamp[:19].replace("T", " "),
        )
    return table


def memory_panel(memory: MemoryStore) -> Panel:
    stats = memory.stats()
    if stats["is_active"]:
        body = Text(stats["formatted_value"], style="bold green")
        subtitle = "M"
    else:
        body = Text("empty", style="dim")
        subtitle = None
    return Panel(body, title="Memory", subtitle=subtitle, expand=False)


def settings_table(settings: Settings) -> Table:
    table = Table(title="Settings", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Angle mode", settings.angle_mode.value)
    table.add_row("Sound", "[green]on[/green]" if settings.sound_enabled else "[red]off[/red]")
    table.add_row("Theme", settings.theme)
    table.add_row("Precision", str(settings.precision))
    return table


def calculator_panel(state: DisplayState) -> Panel:
    """Main calculator screen: expression line above the display."""
    if state.error:
        main = Text(state.display, style="bold red")
    else:
        main = Text(state.display, style="bold")

    expression = Text(truncate_text(state.expression, 40) or " ", style="dim")
    body = Text.assemble(expression, "\n", main, justify="right")

    indicators = [state.angle_mode]
    if state.memory_active:
        indicators.append("M")
    return Panel(body, title="scicalc", subtitle=" ".join(indicators), width=44)
