"""CLI interface for scicalc.

Commands:
- eval: Evaluate an expression
- validate: Check an expression for syntax errors
- fn: Apply a scientific function
- convert / format: Angle conversion and number formatting
- memory: Memory register (MS, MR, MC, M+, M-)
- history: Browse, search, export and recall past calculations
- settings: Angle mode, sound, theme and precision
- repl: Interactive calculator
"""

import json
import logging
import sys
from pathlib import Path

import click
import questionary
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .angles import AngleMode, convert_angle
from .display import calculator_panel, history_table, memory_panel, settings_table, truncate_text
from .errors import CalculatorError
from .formatter import format_number
from .functions import FunctionLibrary
from .session import CalculatorSession
from .storage import DATA_DIR_ENV, JsonFileStore, default_data_dir
from .validator import find_syntax_problem


console = Console()

ANGLE_CHOICES = [mode.value for mode in AngleMode]

# Commands that take negative numbers or expressions as arguments
NUMERIC_ARGS = {"ignore_unknown_options": True}


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _get_session(ctx) -> CalculatorSession:
    """Session backed by the data directory, created once per invocation."""
    if "session" not in ctx.obj:
        ctx.obj["session"] = CalculatorSession(JsonFileStore(ctx.obj["data_dir"]))
    return ctx.obj["session"]


def _fail(error: CalculatorError):
    console.print(f"[red]{error.message}[/red]")
    if error.detail:
        console.print(f"[dim]{error.detail}[/dim]")
    sys.exit(1)


def _parse_angle_mode(value: str) -> AngleMode:
    try:
        return AngleMode.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _value_of(session: CalculatorSession, text: str) -> float:
    """Evaluate a value argument, which may be an expression like 2*pi."""
    return session.compute(text, record=False)


@click.group()
@click.version_option(version=__version__, prog_name="scicalc")
@click.option(
    "--data-dir",
    envvar=DATA_DIR_ENV,
    type=click.Path(file_okay=False),
    help="Directory for settings, memory and history (default: ~/.scicalc)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx, data_dir: str, verbose: bool):
    """scicalc - Scientific calculator.

    Evaluate expressions, apply scientific functions and keep a memory
    register and a history of past calculations between runs.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)
    ctx.obj["data_dir"] = str(data_dir or default_data_dir())


# --- Evaluation Commands ---


@main.command("eval", context_settings=NUMERIC_ARGS)
@click.argument("expression", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--no-history", is_flag=True, help="Don't record the calculation")
@click.pass_context
def eval_command(ctx, expression: tuple, no_history: bool):
    """Evaluate an expression.

    Examples:
        scicalc eval "2 + 3 × 4"
        scicalc eval "(1+2)^3"
        scicalc eval 200+10%
    """
    session = _get_session(ctx)
    text = " ".join(expression)

    try:
        result = session.compute(text, record=not no_history)
    except CalculatorError as e:
        _fail(e)

    formatted = format_number(result, session.settings.settings.precision)
    console.print(f"[dim]{text} =[/dim] [bold green]{formatted}[/bold green]")


@main.command(context_settings=NUMERIC_ARGS)
@click.argument("expression", nargs=-1, required=True, type=click.UNPROCESSED)
def validate(expression: tuple):
    """Check an expression for syntax errors without evaluating it."""
    text = " ".join(expression)
    problem = find_syntax_problem(text)

    if problem:
        console.print(f"[red]Invalid:[/red] {problem}")
        sys.exit(1)
    console.print("[green]Valid[/green]")


@main.command(context_settings=NUMERIC_ARGS)
@click.argument("name")
@click.argument("value", required=False)
@click.option("--exponent", "-x", help="Exponent for power")
@click.option("--mode", "-m", type=click.Choice(ANGLE_CHOICES, case_sensitive=False), help="Angle mode for this call")
@click.option("--min", "random_min", type=float, default=0.0, help="Lower bound for random")
@click.option("--max", "random_max", type=float, default=1.0, help="Upper bound for random")
@click.pass_context
def fn(ctx, name: str, value: str, exponent: str, mode: str, random_min: float, random_max: float):
    """Apply a scientific function.

    NAME is one of sin, cos, tan, asin, acos, atan, log, ln, sqrt, cbrt,
    square, cube, power, factorial, percent, random.

    Examples:
        scicalc fn sin 30
        scicalc fn sqrt 2 --mode RAD
        scicalc fn power 2 -x 10
        scicalc fn random --min 1 --max 6
    """
    session = _get_session(ctx)
    angle_mode = _parse_angle_mode(mode) if mode else session.angle_mode
    library = FunctionLibrary(angle_mode, random_min=random_min, random_max=random_max)

    try:
        args = []
        if value is not None:
            args.append(_value_of(session, value))
        if exponent is not None:
            args.append(_value_of(session, exponent))
        result = library.apply(name, *args)
    except CalculatorError as e:
        _fail(e)

    session.history.add(result.expression, result.value)
    formatted = format_number(result.value, session.settings.settings.precision)
    console.print(f"[dim]{result.expression} =[/dim] [bold green]{formatted}[/bold green]")


@main.command(context_settings=NUMERIC_ARGS)
@click.argument("value", type=float)
@click.option("--from", "from_mode", type=click.Choice(ANGLE_CHOICES, case_sensitive=False), default="DEG")
@click.option("--to", "to_mode", type=click.Choice(ANGLE_CHOICES, case_sensitive=False), default="RAD")
def convert(value: float, from_mode: str, to_mode: str):
    """Convert an angle between DEG, RAD and GRAD."""
    source = _parse_angle_mode(from_mode)
    target = _parse_angle_mode(to_mode)

    radians = convert_angle(value, source, to_radians=True)
    converted = convert_angle(radians, target, to_radians=False)
    console.print(
        f"{format_number(value)}{source.suffix} = [bold green]{format_number(converted)}{target.suffix}[/bold green]"
    )


@main.command("format", context_settings=NUMERIC_ARGS)
@click.argument("value", type=float)
@click.option("--decimals", "-d", type=click.IntRange(0, 15), default=12, help="Maximum decimal places")
def format_command(value: float, decimals: int):
    """Format a number the way the calculator displays it."""
    console.print(format_number(value, decimals))


# --- Memory Commands ---


@main.group()
@click.pass_context
def memory(ctx):
    """Memory register (MS, MR, MC, M+, M-)."""
    pass


@memory.command("show")
@click.pass_context
def memory_show(ctx):
    """Show the memory register."""
    session = _get_session(ctx)
    console.print(memory_panel(session.memory))


def _memory_update(ctx, operation: str, value: str, verb: str):
    session = _get_session(ctx)
    try:
        number = _value_of(session, value)
        saved = getattr(session.memory, operation)(number)
    except CalculatorError as e:
        _fail(e)
    console.print(f"[green]{verb} {format_number(number)}[/green] (memory: {format_number(session.memory.recall())})")
    if not saved:
        console.print("[yellow]Memory could not be saved[/yellow]")


@memory.command("store", context_settings=NUMERIC_ARGS)
@click.argument("value")
@click.pass_context
def memory_store(ctx, value: str):
    """MS: store a value (or expression result)."""
    _memory_update(ctx, "store", value, "Stored")


@memory.command("add", context_settings=NUMERIC_ARGS)
@click.argument("value")
@click.pass_context
def memory_add(ctx, value: str):
    """M+: add a value to memory."""
    _memory_update(ctx, "add", value, "Added")


@memory.command("subtract", context_settings=NUMERIC_ARGS)
@click.argument("value")
@click.pass_context
def memory_subtract(ctx, value: str):
    """M-: subtract a value from memory."""
    _memory_update(ctx, "subtract", value, "Subtracted")


@memory.command("recall")
@click.pass_context
def memory_recall(ctx):
    """MR: print the stored value (0 if empty)."""
    session = _get_session(ctx)
    console.print(format_number(session.memory.recall(), session.settings.settings.precision))


@memory.command("clear")
@click.pass_context
def memory_clear(ctx):
    """MC: clear memory."""
    session = _get_session(ctx)
    if not session.memory.clear():
        console.print("[yellow]Memory could not be saved[/yellow]")
        return
    console.print("[green]Memory cleared[/green]")


# --- History Commands ---


@main.group()
@click.pass_context
def history(ctx):
    """Browse and manage calculation history."""
    pass


@history.command("list")
@click.pass_context
def history_list(ctx):
    """List all calculations, newest first."""
    session = _get_session(ctx)
    entries = session.history.get_all()

    if not entries:
        console.print("[dim]No calculations yet[/dim]")
        return

    console.print(history_table(entries))
    stats = session.history.stats()
    console.print(f"\n[dim]{stats['usage']} entries, {stats['today_calculations']} today[/dim]")


@history.command("recent")
@click.option("--count", "-n", default=5, help="Number of entries to show")
@click.pass_context
def history_recent(ctx, count: int):
    """Show the most recent calculations."""
    session = _get_session(ctx)
    entries = session.history.get_recent(count)

    if not entries:
        console.print("[dim]No calculations yet[/dim]")
        return

    for entry in reversed(entries):
        console.print(f"  {truncate_text(entry.expression)} = [green]{entry.formatted_result}[/green]")


@history.command("show")
@click.argument("index", type=int)
@click.pass_context
def history_show(ctx, index: int):
    """Show one entry by index (0 = oldest)."""
    session = _get_session(ctx)
    entry = session.history.get_item(index)

    if entry is None:
        console.print(f"[red]Error: No history entry at index {index}[/red]")
        sys.exit(1)

    console.print(f"[bold]{entry.expression}[/bold]")
    console.print(f"  = [green]{entry.formatted_result}[/green]")
    console.print(f"  [dim]{entry.timestamp}[/dim]")


@history.command("search")
@click.argument("query")
@click.pass_context
def history_search(ctx, query: str):
    """Find calculations whose expression or result contains QUERY."""
    session = _get_session(ctx)
    matches = session.history.search(query)

    if not matches:
        console.print("[yellow]No calculations match[/yellow]")
        return

    for entry in matches:
        console.print(f"  {entry}")
    console.print(f"\n[dim]{len(matches)} match(es)[/dim]")


@history.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def history_clear(ctx, yes: bool):
    """Delete all history entries."""
    session = _get_session(ctx)

    if not yes and not click.confirm(f"Clear {session.history.size} history entries?"):
        console.print("[yellow]Aborted[/yellow]")
        return

    session.history.clear()
    console.print("[green]History cleared[/green]")


@history.command("export")
@click.argument("filepath", type=click.Path(dir_okay=False))
@click.pass_context
def history_export(ctx, filepath: str):
    """Write history to a JSON file."""
    session = _get_session(ctx)
    data = session.history.export_history()

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    console.print(f"[green]Exported {len(data['history'])} entries to {filepath}[/green]")


@history.command("import")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def history_import(ctx, filepath: str):
    """Replace history with a JSON export."""
    session = _get_session(ctx)

    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        console.print(f"[red]Error: Cannot read {filepath}: {e}[/red]")
        sys.exit(1)

    if not session.history.import_history(data):
        console.print(f"[red]Error: {Path(filepath).name} is not a history export[/red]")
        sys.exit(1)

    console.print(f"[green]Imported {session.history.size} entries[/green]")


@history.command("pick")
@click.pass_context
def history_pick(ctx):
    """Choose a past calculation and store its result in memory."""
    session = _get_session(ctx)
    entries = session.history.get_all()

    if not entries:
        console.print("[dim]No calculations yet[/dim]")
        return

    choices = [
        questionary.Choice(title=f"{truncate_text(e.expression)} = {e.formatted_result}", value=i)
        for i, e in reversed(list(enumerate(entries)))
    ]
    index = questionary.select("Recall which calculation?", choices=choices).ask()
    if index is None:
        return

    state = session.recall_history(index)
    session.memory_action("ms")
    console.print(f"[green]Stored {state.display} in memory[/green]")


# --- Settings Commands ---


@main.group()
@click.pass_context
def settings(ctx):
    """View and change calculator settings."""
    pass


@settings.command("show")
@click.pass_context
def settings_show(ctx):
    """Show current settings."""
    session = _get_session(ctx)
    console.print(settings_table(session.settings.settings))


@settings.command("angle")
@click.argument("mode", required=False, type=click.Choice(ANGLE_CHOICES, case_sensitive=False))
@click.pass_context
def settings_angle(ctx, mode: str):
    """Set the angle mode (asks when MODE is omitted)."""
    session = _get_session(ctx)

    if mode is None:
        mode = questionary.select(
            "Angle mode:",
            choices=ANGLE_CHOICES,
            default=session.angle_mode.value,
        ).ask()
        if mode is None:
            return

    new_mode = session.set_angle_mode(_parse_angle_mode(mode))
    console.print(f"[green]Angle mode: {new_mode.value}[/green]")


@settings.command("sound")
@click.pass_context
def settings_sound(ctx):
    """Toggle key sounds."""
    session = _get_session(ctx)
    enabled = session.toggle_sound()
    console.print(f"[green]Sound {'on' if enabled else 'off'}[/green]")


@settings.command("theme")
@click.pass_context
def settings_theme(ctx):
    """Toggle between dark and light theme."""
    session = _get_session(ctx)
    theme = session.toggle_theme()
    console.print(f"[green]Theme: {theme}[/green]")


@settings.command("precision")
@click.argument("digits", type=int)
@click.pass_context
def settings_precision(ctx, digits: int):
    """Set the maximum number of decimals shown (1-15)."""
    session = _get_session(ctx)
    try:
        session.settings.set_precision(digits)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]Precision: {digits}[/green]")


# --- REPL ---

REPL_HELP = """Type keys as on the calculator: digits . + - * / ^ % ( ) and = or Enter.
Commands:
  :sin :cos :tan :asin :acos :atan :log :ln :sqrt :cbrt :square :cube
  :factorial :percent :random :power N   apply a function
  :ms :mr :mc :m+ :m-                    memory
  :pi :e                                 insert a constant
  :neg :back :ce :c                      negate, backspace, clear entry, clear all
  :angle                                 cycle DEG/RAD/GRAD
  :history  :recall N                    show / recall history
  :quit                                  exit"""

REPL_KEYS = {
    ":neg": "negate",
    ":back": "backspace",
    ":ce": "clear_entry",
    ":c": "clear_all",
}


def _repl_command(session: CalculatorSession, line: str):
    """Run a ':' command. Returns the new DisplayState, or None to just redraw."""
    command, *args = line.split()
    command = command.lower()

    if command == ":help":
        console.print(REPL_HELP)
        return None
    if command == ":history":
        console.print(history_table(session.history.get_all()))
        return None
    if command == ":angle":
        session.toggle_angle_mode()
        return session.state()
    if command in REPL_KEYS:
        return getattr(session, REPL_KEYS[command])()
    if command in (":pi", ":e"):
        return session.input_constant(command[1:])
    if command in (":ms", ":mr", ":mc", ":m+", ":m-"):
        return session.memory_action(command[1:])
    if command == ":recall":
        if not args or not args[0].lstrip("-").isdigit():
            console.print("[yellow]Usage: :recall N[/yellow]")
            return None
        return session.recall_history(int(args[0]))

    try:
        numbers = [float(a) for a in args]
    except ValueError:
        console.print(f"[yellow]Not a number: {' '.join(args)}[/yellow]")
        return None
    return session.apply_function(command[1:], *numbers)


@main.command()
@click.pass_context
def repl(ctx):
    """Interactive calculator.

    Each line is typed in key by key and then evaluated. Lines starting
    with ':' are commands (:help lists them).
    """
    session = _get_session(ctx)
    console.print(calculator_panel(session.state()))
    console.print("[dim]:help for commands, :quit to exit[/dim]")

    while True:
        try:
            line = console.input("[bold cyan]>[/bold cyan] ").strip()
        except (EOFError, KeyboardInterrupt):
            break

        if not line:
            continue
        if line.lower() in (":quit", ":q", ":exit"):
            break

        if line.startswith(":"):
            state = _repl_command(session, line)
            if state is None:
                continue
        else:
            for key in line:
                state = session.handle_key(key)
                if state.error:
                    break
            else:
                if not line.endswith("="):
                    state = session.handle_key("Enter")

        console.print(calculator_panel(state))
        if state.error:
            session.reset_after_error()


if __name__ == "__main__":
    main()
