"""Tests for session.py - Calculator session and event routing."""

import asyncio
import math

import pytest

from scicalc.angles import AngleMode
from scicalc.errors import ErrorKind
from scicalc.session import CalculatorSession, DisplayState
from scicalc.storage import JsonFileStore


@pytest.fixture
def session():
    return CalculatorSession()


def press(session, keys):
    """Send each key through handle_key and return the last state."""
    state = None
    for key in keys:
        state = session.handle_key(key)
    return state


class TestCalculate:
    """Tests for evaluation through the session."""

    def test_keys_to_result(self, session):
        """Test 2+3 Enter shows 5 and records history."""
        state = press(session, ["2", "+", "3", "Enter"])
        assert state.display == "5"
        assert state.ok
        assert session.history.size == 1
        assert session.history.get_item(0).expression == "2+3"

    def test_display_operators_in_history(self, session):
        """Test history keeps display symbols."""
        press(session, ["6", "*", "7", "="])
        assert session.history.get_item(0).expression == "6×7"
        assert session.history.get_item(0).result == 42.0

    def test_division_by_zero(self, session):
        """Test 5÷0 reports the error and records nothing."""
        state = press(session, ["5", "/", "0", "Enter"])
        assert state.error_kind is ErrorKind.DIVISION_BY_ZERO
        assert state.display == "Error: Division by zero"
        assert session.history.size == 0

    def test_unbalanced_is_syntax_error(self, session):
        """Test unclosed parenthesis is not auto-closed."""
        state = press(session, ["(", "2", "+", "3", "Enter"])
        assert state.error_kind is ErrorKind.SYNTAX_ERROR

    def test_reset_after_error(self, session):
        """Test input returns to 0 after an error is shown."""
        press(session, ["5", "/", "0", "Enter"])
        state = session.reset_after_error()
        assert state.display == "0"
        assert state.expression == ""

    def test_chaining(self, session):
        """Test result feeds the next calculation."""
        press(session, ["2", "+", "3", "Enter"])
        state = press(session, ["*", "4", "Enter"])
        assert state.display == "20"
        assert session.history.size == 2

    def test_repeat_enter_not_recorded(self, session):
        """Test Enter on a lone result adds nothing."""
        press(session, ["2", "+", "3", "Enter", "Enter"])
        assert session.history.size == 1

    def test_precision_applied_to_display(self, session):
        """Test display uses the precision setting."""
        session.settings.set_precision(3)
        state = press(session, ["1", "/", "3", "Enter"])
        assert state.display == "0.333"

    def test_compute_without_history(self, session):
        """Test compute with record=False."""
        assert session.compute("2^10", record=False) == 1024
        assert session.history.size == 0

    def test_chained_result_keeps_precision(self, session):
        """Test a result carried into the next calculation is not rounded."""
        press(session, ["1", "/", "3", "Enter"])
        state = press(session, ["*", "3", "Enter"])
        assert session.last_result == 1.0
        assert state.display == "1"


class TestDeferredCalculation:
    """Tests for calculate_deferred."""

    def test_runs_after_delay(self, session):
        """Test a single deferred calculation."""
        press(session, ["9", "-", "4"])
        state = asyncio.run(session.calculate_deferred(0.01))
        assert state.display == "5"

    def test_only_latest_request_runs(self, session):
        """Test a newer request supersedes a pending one."""
        press(session, ["1", "+", "1"])

        async def run_both():
            return await asyncio.gather(
                session.calculate_deferred(0.01),
                session.calculate_deferred(0.01),
            )

        first, second = asyncio.run(run_both())
        assert first is None
        assert second.display == "2"
        assert session.history.size == 1


class TestFunctions:
    """Tests for apply_function."""

    def test_sqrt_on_operand(self, session):
        """Test function applies to the typed operand."""
        press(session, ["1", "6"])
        state = session.apply_function("sqrt")
        assert state.display == "4"
        assert session.history.get_item(0).expression == "√(16)"

    def test_result_continues_expression(self, session):
        """Test function result can be used further."""
        press(session, ["1", "6"])
        session.apply_function("sqrt")
        state = press(session, ["+", "1", "Enter"])
        assert state.display == "5"

    def test_function_inside_expression(self, session):
        """Test function applied to the operand after an operator."""
        press(session, ["1", "0", "+", "9"])
        session.apply_function("sqrt")
        state = session.calculate()
        assert state.display == "13"

    def test_domain_error_keeps_input(self, session):
        """Test failure leaves the operand untouched."""
        press(session, ["4"])
        session.negate()
        state = session.apply_function("sqrt")
        assert state.error_kind is ErrorKind.DOMAIN_ERROR
        assert session.builder.current == "-4"
        assert session.history.size == 0

    def test_empty_operand_is_zero(self, session):
        """Test functions on empty input use 0."""
        state = session.apply_function("log")
        assert state.error_kind is ErrorKind.DOMAIN_ERROR
        assert session.apply_function("cos").display == "1"

    def test_power_with_exponent(self, session):
        """Test power takes an exponent argument."""
        press(session, ["2"])
        assert session.apply_function("power", 3).display == "8"

    def test_random(self, session):
        """Test random ignores the operand."""
        state = session.apply_function("random")
        assert 0 <= float(state.display) < 1

    def test_angle_mode_followed(self, session):
        """Test functions use the current angle mode."""
        session.toggle_angle_mode()
        session.input_constant("pi")
        state = session.apply_function("sin")
        assert state.display == "0"
        assert state.angle_mode == "RAD"

    def test_after_close_paren_uses_group(self, session):
        """Test a function after ")" applies to the grouped value."""
        press(session, ["(", "2", "+", "3", ")"])
        state = session.apply_function("sqrt")
        assert state.ok
        assert session.history.get_item(0).expression == "√(5)"
        assert session.last_result == pytest.approx(math.sqrt(5))
        assert state.expression == ""

    def test_after_close_paren_error(self, session):
        """Test a failing group is reported and keeps the input."""
        press(session, ["(", "4", "-", "9", ")"])
        state = session.apply_function("sqrt")
        assert state.error_kind is ErrorKind.DOMAIN_ERROR
        assert session.builder.full_expression() == "(4−9)"
        assert session.history.size == 0


class TestMemoryActions:
    """Tests for memory_action."""

    def test_store_and_recall(self, session):
        """Test MS then MR."""
        press(session, ["7"])
        state = session.memory_action("ms")
        assert state.memory_active is True
        session.clear_all()
        assert session.memory_action("mr").display == "7"

    def test_add_subtract(self, session):
        """Test M+ and M- with the current operand."""
        press(session, ["7"])
        session.memory_action("m+")
        session.clear_all()
        press(session, ["3"])
        session.memory_action("m+")
        session.memory_action("m-sub")
        assert session.memory.recall() == 7.0

    def test_clear(self, session):
        """Test MC."""
        press(session, ["7"])
        session.memory_action("ms")
        assert session.memory_action("mc").memory_active is False

    def test_unknown_action(self, session):
        """Test unknown memory action."""
        assert session.memory_action("mx").error_kind is ErrorKind.INVALID_INPUT

    def test_store_after_group(self, session):
        """Test MS after ")" or "%" stores the pending value."""
        press(session, ["(", "2", "+", "3", ")"])
        session.memory_action("ms")
        assert session.memory.recall() == 5.0
        session.clear_all()
        press(session, ["5", "0", "%"])
        session.memory_action("m+")
        assert session.memory.recall() == 5.5

    def test_total_overflow_reported(self, session):
        """Test M+ past the float range is a memory error and MR still works."""
        session.input_constant(1e308)
        session.memory_action("m+")
        state = session.memory_action("m+")
        assert state.error_kind is ErrorKind.MEMORY_ERROR
        assert session.memory.recall() == 1e308
        state = session.memory_action("mr")
        assert state.ok
        assert float(session.builder.current) == 1e308


class TestHistoryRecall:
    """Tests for recall_history."""

    def test_recall(self, session):
        """Test recall loads the result as operand."""
        press(session, ["2", "+", "3", "Enter"])
        session.clear_all()
        press(session, ["1", "+"])
        session.recall_history(0)
        assert session.calculate().display == "6"

    def test_recall_does_not_reorder(self, session):
        """Test recall leaves history order alone."""
        press(session, ["1", "+", "1", "Enter"])
        press(session, ["2", "+", "2", "Enter"])
        session.recall_history(0)
        assert [e.expression for e in session.history.get_all()] == ["1+1", "2+2"]

    def test_missing_entry(self, session):
        """Test out-of-range index."""
        assert session.recall_history(5).error_kind is ErrorKind.INVALID_INPUT


class TestKeysAndConstants:
    """Tests for handle_key and input_constant."""

    def test_unknown_key_ignored(self, session):
        """Test unknown keys do nothing."""
        press(session, ["4"])
        assert session.handle_key("F5").display == "4"
        assert session.handle_key("a").display == "4"

    def test_editing_keys(self, session):
        """Test Backspace, Delete and Escape."""
        press(session, ["1", "2", "+", "3", "4"])
        assert session.handle_key("Backspace").display == "3"
        state = session.handle_key("Delete")
        assert state.display == "0"
        assert state.expression == "12+"
        assert session.handle_key("Escape").expression == ""

    def test_comma_is_decimal(self, session):
        """Test comma key types a decimal point."""
        assert press(session, ["1", ",", "5"]).display == "1.5"

    def test_constant(self, session):
        """Test π."""
        assert session.input_constant("π").display == "3.14159265359"

    def test_unknown_constant(self, session):
        """Test unknown constant name."""
        assert session.input_constant("tau").error_kind is ErrorKind.INVALID_INPUT

    def test_non_finite_constant(self, session):
        """Test NaN or infinity as a literal is invalid input."""
        press(session, ["4"])
        for bad in (float("nan"), float("inf")):
            state = session.input_constant(bad)
            assert state.error_kind is ErrorKind.INVALID_INPUT
            assert state.display == "Invalid Input"
        assert session.state().display == "4"


class TestSettingsAndState:
    """Tests for toggles, clipboard and export/import."""

    def test_toggle_angle_mode(self, session):
        """Test toggling syncs the function library."""
        assert session.toggle_angle_mode() is AngleMode.RADIANS
        assert session.functions.angle_mode is AngleMode.RADIANS
        assert session.state().angle_mode == "RAD"

    def test_toggle_sound_and_theme(self, session):
        """Test preference toggles."""
        assert session.toggle_sound() is False
        assert session.toggle_theme() == "light"

    def test_copy_display(self, session):
        """Test display text goes to the clipboard writer."""
        press(session, ["4", "2"])
        copied = []
        assert session.copy_display(copied.append) is True
        assert copied == ["42"]

    def test_copy_display_failure(self, session):
        """Test clipboard failures are reported, not raised."""

        def broken(text):
            raise OSError("no clipboard")

        assert session.copy_display(broken) is False

    def test_export_import(self, session):
        """Test state round trip into a fresh session."""
        session.toggle_angle_mode()
        press(session, ["9"])
        session.memory_action("ms")
        session.clear_all()
        press(session, ["1", "2"])
        data = session.export_state()

        other = CalculatorSession()
        assert other.import_state(data) is True
        assert other.angle_mode is AngleMode.RADIANS
        assert other.memory.recall() == 9.0
        assert other.state().display == "12"

    def test_import_invalid(self, session):
        """Test non-dict import is rejected."""
        assert session.import_state("nope") is False

    def test_persisted_across_sessions(self, tmp_path):
        """Test history, memory and settings reload."""
        first = CalculatorSession(JsonFileStore(str(tmp_path)))
        press(first, ["2", "+", "2", "Enter"])
        first.memory_action("ms")
        first.toggle_angle_mode()

        second = CalculatorSession(JsonFileStore(str(tmp_path)))
        assert second.history.size == 1
        assert second.memory.recall() == 4.0
        assert second.angle_mode is AngleMode.RADIANS

    def test_unreadable_files_ignored(self, tmp_path):
        """Test a session starts with defaults when stored files are not UTF-8."""
        (tmp_path / "calculatorMemory.json").write_bytes(b"\xff\xfe{")
        session = CalculatorSession(JsonFileStore(str(tmp_path)))
        assert session.memory.recall() == 0.0
        assert session.memory.is_active() is False

    def test_display_state_to_dict(self):
        """Test DisplayState serialization."""
        state = DisplayState(display="0")
        assert state.to_dict()["error_kind"] is None
