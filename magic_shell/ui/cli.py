# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for magic-shell."""

import json
import logging
from typing import IO, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from magic_shell import __version__
from magic_shell.config.settings import Settings, load_settings
from magic_shell.config.store import ConfigStore, HistoryStore
from magic_shell.core.errors import (
    ConfigurationError,
    ExecutionFailureError,
    PolicyRefusalError,
)
from magic_shell.execution.adapter import SubprocessExecutor
from magic_shell.safety.classifier import RiskClassifier
from magic_shell.safety.levels import SafetyLevel
from magic_shell.safety.policy import ExecutionMode, decide, enforce
from magic_shell.translation import PassthroughTranslator, is_direct_command
from magic_shell.ui.rendering import (
    config_table,
    history_table,
    safety_levels_text,
    verdict_line,
    verdict_table,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="msh",
    help="Magic Shell - natural language to shell commands, with a safety gate",
    add_completion=False,
)
block_app = typer.Typer(help="Manage commands that are always refused")
allow_app = typer.Typer(help="Manage patterns you have chosen to always allow")
app.add_typer(block_app, name="block")
app.add_typer(allow_app, name="allow")

console = Console()
err_console = Console(stderr=True)


def _configure_logging(
    level: str,
    stream: Optional[IO[str]] = None,
    log_file: Optional[str] = None,
) -> None:
    """Configure root logging. Unknown level names fall back to WARNING."""
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    log_console = Console(file=stream) if stream is not None else Console(stderr=True)
    handlers: list = [
        RichHandler(console=log_console, show_time=False, show_path=False, markup=False)
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=numeric_level, format="%(message)s", handlers=handlers, force=True)


def _flush_logging() -> None:
    for handler in logging.root.handlers:
        handler.flush()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"magic-shell v{__version__}")
        raise typer.Exit()


def _settings(ctx: typer.Context) -> Settings:
    root = ctx.find_root()
    if isinstance(root.obj, Settings):
        return root.obj
    return load_settings()


def _config_store(ctx: typer.Context) -> ConfigStore:
    return ConfigStore(_settings(ctx).config_dir)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to MAGIC_SHELL_LOG_LEVEL.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Magic Shell - describe what you want, review the command, run it safely.

    Examples:
        # Print the command for a request (pipe-friendly)
        msh run "list files by size"

        # Preview a command and its safety verdict
        msh run -n "delete node_modules"

        # Run it (refused when dangerous)
        msh run -x "show disk usage"

        # Interactive session
        msh shell
    """
    settings = load_settings()
    _configure_logging(log_level or settings.log_level, log_file=settings.log_file)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        from magic_shell.ui.repl import run_repl

        run_repl(settings)


@app.command()
def run(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="What you want to do, or a shell command"),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Show the command and its safety verdict only"
    ),
    execute: bool = typer.Option(
        False, "--execute", "-x", help="Run the command unless it is dangerous"
    ),
) -> None:
    """Translate a request into a shell command."""
    settings = _settings(ctx)
    config = ConfigStore(settings.config_dir).load()

    command = query.strip() if is_direct_command(query) else PassthroughTranslator().translate(query)
    if not command:
        err_console.print("[bold red]Error:[/] Nothing to translate")
        raise typer.Exit(1)

    verdict = RiskClassifier().classify(command, config)

    if dry_run:
        decision = decide(verdict, ExecutionMode.PREVIEW)
        console.print(f"[dim]Query:[/] {escape(query)}")
        console.print()
        console.print(f"[bold]Command:[/] {escape(command)}")
        if verdict.is_dangerous:
            console.print()
        console.print(verdict_line(verdict))
        logger.debug(f"Preview decision: {decision.reason}")
        return

    if not execute:
        typer.echo(command)
        return

    decision = decide(verdict, ExecutionMode.EXECUTE)
    try:
        enforce(decision, command)
    except PolicyRefusalError as e:
        err_console.print(f"[dim]Command:[/] {escape(command)}")
        err_console.print(verdict_line(verdict))
        err_console.print(f"[yellow]{escape(e.recovery_hint or '')}[/]")
        _flush_logging()
        raise typer.Exit(1)

    executor = SubprocessExecutor(timeout=settings.execution_timeout, stream=True)
    try:
        result = executor.run(command)
    except ExecutionFailureError as e:
        err_console.print(f"[bold red]Error:[/] {escape(e.message)}")
        raise typer.Exit(1)

    _flush_logging()
    raise typer.Exit(result.exit_code)


@app.command()
def check(
    ctx: typer.Context,
    command: str = typer.Argument(..., help="Shell command to classify"),
    as_json: bool = typer.Option(False, "--json", help="Print the verdict as JSON"),
) -> None:
    """Classify a command without running it."""
    config = _config_store(ctx).load()
    verdict = RiskClassifier().classify(command, config)

    if as_json:
        typer.echo(json.dumps({"command": command, **verdict.to_dict()}))
        return
    console.print(verdict_table(command, verdict))


@app.command()
def safety(
    ctx: typer.Context,
    level: Optional[str] = typer.Argument(None, help="strict, moderate or relaxed"),
) -> None:
    """Show or set the safety level."""
    store = _config_store(ctx)

    if level is None:
        config = store.load()
        console.print(f"Safety level: [bold]{config.safety_level.value}[/]")
        console.print(safety_levels_text(config.safety_level))
        return

    try:
        config = store.set_safety_level(level)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Unknown safety level:[/] {escape(level)}")
        err_console.print(f"Valid levels: {', '.join(e.valid_values)}")
        for lvl in SafetyLevel:
            err_console.print(f"  {lvl.value:<9}- {lvl.summary}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/] Safety level set to {config.safety_level.value}")


def _print_entries(title: str, entries: list) -> None:
    if not entries:
        console.print(f"[dim]No {title}[/]")
        return
    console.print(f"[bold]{title.capitalize()}:[/]")
    for entry in entries:
        console.print(f"  {escape(entry)}")


@block_app.command("add")
def block_add(ctx: typer.Context, pattern: str = typer.Argument(..., help="Substring to block")) -> None:
    """Always refuse commands containing PATTERN."""
    try:
        _config_store(ctx).add_blocked_command(pattern)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error:[/] {escape(e.message)}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Blocked: {escape(pattern)}")


@block_app.command("remove")
def block_remove(ctx: typer.Context, pattern: str = typer.Argument(..., help="Entry to remove")) -> None:
    """Remove an entry from the blocked list."""
    try:
        _config_store(ctx).remove_blocked_command(pattern)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error:[/] {escape(e.message)}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Unblocked: {escape(pattern)}")


@block_app.command("list")
def block_list(ctx: typer.Context) -> None:
    """List blocked commands."""
    _print_entries("blocked commands", _config_store(ctx).load().blocked_commands)


@allow_app.command("add")
def allow_add(ctx: typer.Context, pattern: str = typer.Argument(..., help="Substring to allow")) -> None:
    """Stop asking for confirmation on commands containing PATTERN (critical excepted)."""
    try:
        _config_store(ctx).add_confirmed_pattern(pattern)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error:[/] {escape(e.message)}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Allowed: {escape(pattern)}")


@allow_app.command("remove")
def allow_remove(ctx: typer.Context, pattern: str = typer.Argument(..., help="Entry to remove")) -> None:
    """Remove an entry from the allowed list."""
    try:
        _config_store(ctx).remove_confirmed_pattern(pattern)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error:[/] {escape(e.message)}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/] No longer allowed: {escape(pattern)}")


@allow_app.command("list")
def allow_list(ctx: typer.Context) -> None:
    """List allowed patterns."""
    _print_entries("allowed patterns", _config_store(ctx).load().confirmed_dangerous_patterns)


@app.command()
def history(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-l", min=1, help="Number of entries to show"),
    clear: bool = typer.Option(False, "--clear", help="Delete all history"),
) -> None:
    """Show recently executed commands."""
    settings = _settings(ctx)
    store = HistoryStore(
        settings.config_dir,
        limit=settings.history_limit,
        output_chars=settings.history_output_chars,
    )

    if clear:
        store.clear()
        console.print("[green]✓[/] History cleared")
        return

    entries = store.load()
    if not entries:
        console.print("[dim]No history yet[/]")
        return
    console.print(history_table(entries[-limit:]))


@app.command("config")
def show_config(
    ctx: typer.Context,
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--no-dry-run",
        help="Start interactive sessions in dry-run mode",
    ),
) -> None:
    """Show the effective configuration."""
    settings = _settings(ctx)
    store = ConfigStore(settings.config_dir)
    if dry_run is not None:
        store.set_dry_run_by_default(dry_run)
        console.print(f"[green]✓[/] Dry run by default: {'on' if dry_run else 'off'}")
    console.print(config_table(store.load()))
    console.print(f"[dim]Config file:[/] {escape(str(store.config_file))}", soft_wrap=True)
    console.print(f"[dim]Log level:[/] {escape(settings.log_level)}")


@app.command()
def shell(ctx: typer.Context) -> None:
    """Start an interactive session."""
    from magic_shell.ui.repl import run_repl

    run_repl(_settings(ctx))


if __name__ == "__main__":
    app()
