"""Tests for display.py - Terminal rendering."""

from rich.console import Console

from scicalc.display import (
    EXPRESSION_MAX_LENGTH,
    calculator_panel,
    history_table,
    memory_panel,
    settings_table,
    truncate_text,
)
from scicalc.history import HistoryLog
from scicalc.memory import MemoryStore
from scicalc.session import DisplayState
from scicalc.settings import Settings
from scicalc.storage import InMemoryStore


def render(renderable) -> str:
    console = Console(record=True, width=80)
    console.print(renderable)
    return console.export_text()


class TestTruncateText:
    """Tests for truncate_text function."""

    def test_short_text_unchanged(self):
        """Test text within limit is unchanged."""
        assert truncate_text("2+3") == "2+3"

    def test_long_expression(self):
        """Test expressions are cut to 30 characters."""
        result = truncate_text("1+" * 20)
        assert len(result) == EXPRESSION_MAX_LENGTH
        assert result.endswith("...")

    def test_custom_suffix(self):
        """Test custom suffix."""
        assert truncate_text("abcdefghij", 6, suffix="~") == "abcde~"


class TestRenderables:
    """Tests for tables and panels."""

    def test_history_table_newest_first(self):
        """Test rows are newest first with recall index."""
        history = HistoryLog(InMemoryStore())
        history.add("1+1", 2)
        history.add("7×6", 42)

        table = history_table(history.get_all())
        assert table.row_count == 2
        text = render(table)
        assert text.index("7×6") < text.index("1+1")

    def test_memory_panel(self):
        """Test empty and active memory."""
        memory = MemoryStore(InMemoryStore())
        assert "empty" in render(memory_panel(memory))
        memory.store(12.5)
        assert "12.5" in render(memory_panel(memory))

    def test_settings_table(self):
        """Test one row per setting."""
        table = settings_table(Settings())
        assert table.row_count == 4
        assert "DEG" in render(table)

    def test_calculator_panel(self):
        """Test display, expression and indicators."""
        state = DisplayState(display="42", expression="6×", memory_active=True, angle_mode="RAD")
        text = render(calculator_panel(state))
        assert "42" in text
        assert "6×" in text
        assert "RAD M" in text

    def test_calculator_panel_error(self):
        """Test error text is shown."""
        state = DisplayState(display="Math Error", error="Math Error")
        assert "Math Error" in render(calculator_panel(state))
