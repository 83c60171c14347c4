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

"""Rich helpers shared by the one-shot CLI and the REPL."""

from __future__ import annotations

from typing import List, Sequence

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from magic_shell.config.settings import ShellConfig
from magic_shell.config.store import HistoryEntry
from magic_shell.safety.classifier import SafetyVerdict
from magic_shell.safety.levels import SafetyLevel, Severity
from magic_shell.safety.patterns import get_catalog

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "bold dark_orange",
    Severity.MEDIUM: "bold yellow",
    Severity.LOW: "green",
}

SAFE_MESSAGE = "Command appears safe"


def severity_badge(severity: Severity) -> Text:
    return Text(f"[{severity.value.upper()}]", style=SEVERITY_STYLES[severity])


def verdict_line(verdict: SafetyVerdict) -> Text:
    """``[SEVERITY] reason`` for dangerous commands, a check mark otherwise."""
    if not verdict.is_dangerous:
        return Text(f"✓ {SAFE_MESSAGE}", style="green")
    line = severity_badge(verdict.severity)
    line.append(f" {verdict.reason}")
    return line


def verdict_table(command: str, verdict: SafetyVerdict) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Command", Text(command, style="bold"))
    table.add_row("Severity", severity_badge(verdict.severity))
    table.add_row("Dangerous", "yes" if verdict.is_dangerous else "no")
    if verdict.reason:
        table.add_row("Reason", verdict.reason)
    if verdict.patterns:
        table.add_row("Matched", matched_rules_text(verdict.patterns))
    return table


def matched_rules_text(patterns: Sequence[str]) -> Text:
    """One line per matched pattern, with the rule description when it is a rule id."""
    catalog = get_catalog()
    text = Text()
    for index, pattern in enumerate(patterns):
        if index:
            text.append("\n")
        text.append(pattern)
        rule = catalog.get(pattern)
        if rule is not None and rule.description:
            text.append(f" ({rule.description})", style="dim")
    return text


def config_table(config: ShellConfig) -> Table:
    table = Table(title="magic-shell configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row(
        "Safety level",
        f"{config.safety_level.value} [dim]({escape(config.safety_level.summary)})[/]",
    )
    table.add_row("Dry run by default", "on" if config.dry_run_by_default else "off")
    table.add_row(
        "Blocked commands",
        "\n".join(escape(entry) for entry in config.blocked_commands) or "[dim]none[/]",
    )
    table.add_row(
        "Allowed patterns",
        "\n".join(escape(entry) for entry in config.confirmed_dangerous_patterns)
        or "[dim]none[/]",
    )
    return table


def history_table(entries: List[HistoryEntry]) -> Table:
    table = Table(title="Command history")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Input")
    table.add_column("Command", style="bold")
    for index, entry in enumerate(entries, start=1):
        table.add_row(str(index), escape(entry.input), escape(entry.command))
    return table


def safety_levels_text(current: SafetyLevel) -> Text:
    text = Text()
    for level in SafetyLevel:
        marker = "●" if level == current else " "
        text.append(f" {marker} {level.value:<9}", style="bold" if level == current else "")
        text.append(f"{level.summary}\n", style="dim")
    return text
