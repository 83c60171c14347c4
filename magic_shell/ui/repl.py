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

"""Interactive REPL for ``msh shell``.

Keys while a command awaits confirmation:
    Enter  run      n  cancel      e  edit      c  copy

Ctrl-C cancels the pending command, Ctrl-D leaves the session.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from magic_shell import __version__
from magic_shell.config.settings import Settings
from magic_shell.config.store import ConfigStore, HistoryStore
from magic_shell.core.errors import ClipboardError, ConfigurationError, MagicShellError
from magic_shell.execution.adapter import SubprocessExecutor
from magic_shell.execution.clipboard import Clipboard
from magic_shell.session.interactive import InteractiveSession, SessionOutcome
from magic_shell.ui.rendering import SEVERITY_STYLES, config_table, history_table, severity_badge

logger = logging.getLogger(__name__)

CONFIRM_HINT = "[Enter] run  [n] cancel  [e] edit  [c] copy"
EXIT_WORDS = ("exit", "quit")

HELP_TEXT = """\
[bold]Session commands[/]
  !help            This help
  !dry             Toggle dry-run mode
  !config          Show configuration
  !history         Show recent commands
  !clear           Clear the screen
  !safety <level>  Set safety level (strict, moderate, relaxed)
  !<command>       Run <command> as typed

[bold]Confirmation keys[/]
  Enter  run    n  cancel    e  edit    c  copy

[bold]Safety levels[/]
  strict    Confirm all potentially dangerous commands
  moderate  Confirm high/critical severity commands (default)
  relaxed   Only confirm critical commands

Ctrl-C cancels a pending command. Ctrl-D exits."""


class Repl:
    """Read-eval-print loop around an InteractiveSession."""

    def __init__(
        self,
        session: InteractiveSession,
        config_store: ConfigStore,
        history_store: HistoryStore,
        clipboard: Optional[Clipboard] = None,
        console: Optional[Console] = None,
    ):
        self.session = session
        self.config_store = config_store
        self.history_store = history_store
        self.clipboard = clipboard or Clipboard()
        self.console = console or Console()
        self._draft = ""

    # -------------------------------------------------------------------------
    # Prompts
    # -------------------------------------------------------------------------

    def prompt_text(self) -> str:
        cwd = Path(self.session.cwd)
        label = cwd.name or str(cwd)
        dry = " [yellow](dry)[/]" if self.session.dry_run else ""
        return f"[bold cyan]{escape(label)}[/]{dry} [bold]❯[/] "

    def read_line(self) -> str:
        if self._draft:
            draft, self._draft = self._draft, ""
            return Prompt.ask(self.prompt_text(), console=self.console, default=draft)
        return self.console.input(self.prompt_text())

    # -------------------------------------------------------------------------
    # Input handling
    # -------------------------------------------------------------------------

    def handle_line(self, line: str) -> bool:
        """Process one line of input. Returns False when the session should end."""
        text = line.strip()
        if not text:
            return True
        if text.lower() in EXIT_WORDS:
            return False
        if text.startswith("!"):
            self.handle_session_command(text)
            return True
        self.show_outcome(self.session.submit(text))
        return True

    def handle_session_command(self, text: str) -> None:
        body = text[1:].strip()
        name, _, argument = body.partition(" ")
        name = name.lower()

        if name == "help":
            self.console.print(HELP_TEXT)
        elif name == "dry":
            enabled = self.session.toggle_dry_run()
            self.console.print(f"Dry-run mode: [bold]{'ON' if enabled else 'OFF'}[/]")
        elif name == "config":
            self.console.print(config_table(self.session.config))
        elif name == "history":
            entries = self.history_store.load()
            if entries:
                self.console.print(history_table(entries[-10:]))
            else:
                self.console.print("[dim]No history yet[/]")
        elif name == "clear":
            self.console.clear()
        elif name == "safety":
            self.set_safety_level(argument.strip())
        elif body:
            self.show_outcome(self.session.submit(text, command=body))

    def set_safety_level(self, level: str) -> None:
        if not level:
            self.console.print(f"Safety level: [bold]{self.session.config.safety_level.value}[/]")
            return
        try:
            config = self.config_store.set_safety_level(level)
        except ConfigurationError as e:
            self.console.print(f"[red]{escape(e.message)}[/] ({escape(e.recovery_hint or '')})")
            return
        self.session.update_config(config)
        self.console.print(f"[green]✓[/] Safety level set to {config.safety_level.value}")

    def handle_confirmation(self, key: str) -> None:
        """Apply a confirmation key to the pending command."""
        choice = key.strip().lower()
        if choice in ("", "y", "yes"):
            self.show_outcome(self.session.confirm())
        elif choice in ("n", "no"):
            self.session.cancel()
            self.console.print("[dim]Cancelled[/]")
        elif choice == "e":
            self._draft = self.session.edit()
        elif choice == "c":
            try:
                self.session.copy(self.clipboard)
            except ClipboardError as e:
                self.console.print(f"[red]{escape(e.message)}[/]")
            else:
                self.console.print("[green]✓[/] Copied to clipboard")
        else:
            self.console.print(f"[dim]{escape(CONFIRM_HINT)}[/]")

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def show_outcome(self, outcome: SessionOutcome) -> None:
        pending = outcome.command
        if outcome.awaiting_confirmation:
            verdict = pending.verdict
            body = Text(pending.command_text, style="bold")
            body.append("\n\n")
            body.append_text(severity_badge(verdict.severity))
            body.append(f" {verdict.reason}")
            self.console.print(
                Panel(
                    body,
                    title="Confirm command",
                    border_style=SEVERITY_STYLES[verdict.severity],
                    expand=False,
                )
            )
            self.console.print(f"[dim]{escape(CONFIRM_HINT)}[/]")
            return

        if outcome.dry_run:
            self.console.print(f"[yellow]{escape(outcome.message)}[/]")
            return

        self.console.print(f"[dim]$[/] {escape(pending.command_text)}")
        style = "" if outcome.succeeded else "red"
        self.console.print(Text(outcome.message.rstrip("\n"), style=style))
        if not outcome.succeeded:
            self.console.print(f"[dim]Exit code: {outcome.exit_code}[/]")

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def run(self) -> None:
        self.console.print(
            f"[bold]magic-shell[/] v{__version__}  "
            f"[dim]safety: {self.session.config.safety_level.value}  !help for commands[/]"
        )
        while True:
            try:
                if self.session.pending is not None:
                    self.handle_confirmation(self.console.input("[bold]›[/] "))
                    continue
                if not self.handle_line(self.read_line()):
                    break
            except KeyboardInterrupt:
                self.console.print()
                if self.session.pending is not None:
                    self.session.cancel()
                    self.console.print("[dim]Cancelled[/]")
            except EOFError:
                self.console.print()
                break
            except MagicShellError as e:
                logger.debug(f"Session error: {e}")
                self.console.print(f"[bold red]Error:[/] {escape(e.message)}")


def run_repl(settings: Settings, console: Optional[Console] = None) -> None:
    """Build a session from settings and run the REPL until the user exits."""
    config_store = ConfigStore(settings.config_dir)
    history_store = HistoryStore(
        settings.config_dir,
        limit=settings.history_limit,
        output_chars=settings.history_output_chars,
    )
    session = InteractiveSession(
        config=config_store.load(),
        executor=SubprocessExecutor(timeout=settings.execution_timeout),
        history=history_store,
    )
    repl = Repl(
        session,
        config_store,
        history_store,
        clipboard=Clipboard(settings.clipboard_command),
        console=console,
    )
    repl.run()
