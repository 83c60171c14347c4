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

"""Interactive session: one pending-command slot plus the session's cwd.

Usage:
    session = InteractiveSession(config=store.load(), history=history_store)

    outcome = session.submit("rm -rf build")
    if outcome.awaiting_confirmation:
        outcome = session.confirm()      # or cancel() / edit() / copy(clipboard)

Each session owns its slot. Nothing here is module-global, so two sessions
never see each other's pending command.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from magic_shell.config.settings import ShellConfig
from magic_shell.config.store import HistoryEntry, HistoryStore
from magic_shell.core.errors import ExecutionFailureError, NoPendingCommandError
from magic_shell.execution.adapter import ExecutionAdapter, SubprocessExecutor
from magic_shell.execution.clipboard import Clipboard
from magic_shell.safety.classifier import RiskClassifier
from magic_shell.safety.policy import ExecutionMode, GateDecision, decide
from magic_shell.session.confirmation import CommandState, PendingCommand
from magic_shell.translation import (
    PassthroughTranslator,
    TranslationContext,
    Translator,
    is_direct_command,
)

logger = logging.getLogger(__name__)

DRY_RUN_PREFIX = "[DRY RUN] Would execute: "
EMPTY_OUTPUT_MESSAGE = "Command completed successfully"


@dataclass
class SessionOutcome:
    """What happened to a command after submit/confirm."""

    command: PendingCommand
    decision: Optional[GateDecision] = None
    message: str = ""
    exit_code: Optional[int] = None
    dry_run: bool = False

    @property
    def awaiting_confirmation(self) -> bool:
        # Confirm outcomes carry no decision; a dry-run confirm keeps the state.
        return (
            self.decision is not None
            and self.decision.requires_confirmation
            and self.command.state == CommandState.PENDING_CONFIRMATION
        )

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


def parse_cd_target(command: str) -> Optional[str]:
    """Return the target of a ``cd <path>`` command, or None for anything else."""
    stripped = command.strip()
    if not stripped.startswith("cd "):
        return None
    target = stripped[3:].strip()
    if target and target[0] in "\"'":
        target = target[1:]
    if target and target[-1] in "\"'":
        target = target[:-1]
    return target


class InteractiveSession:
    """Drives the confirmation state machine for one interactive session."""

    def __init__(
        self,
        config: Optional[ShellConfig] = None,
        executor: Optional[ExecutionAdapter] = None,
        history: Optional[HistoryStore] = None,
        translator: Optional[Translator] = None,
        classifier: Optional[RiskClassifier] = None,
        cwd: Union[str, Path, None] = None,
        dry_run: Optional[bool] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.config = config or ShellConfig()
        self.executor = executor or SubprocessExecutor()
        self.history = history
        self.translator = translator or PassthroughTranslator()
        self.classifier = classifier or RiskClassifier()
        self.cwd = str(Path(cwd).resolve()) if cwd is not None else os.getcwd()
        self.dry_run = self.config.dry_run_by_default if dry_run is None else dry_run
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:12])
        self._pending: Optional[PendingCommand] = None

    @property
    def pending(self) -> Optional[PendingCommand]:
        return self._pending

    def toggle_dry_run(self) -> bool:
        self.dry_run = not self.dry_run
        return self.dry_run

    def update_config(self, config: ShellConfig) -> None:
        """Use a new policy for subsequent proposals."""
        self.config = config

    # -------------------------------------------------------------------------
    # Proposal
    # -------------------------------------------------------------------------

    def translate(self, text: str) -> str:
        if is_direct_command(text):
            return text.strip()
        context = TranslationContext(cwd=self.cwd, shell=os.environ.get("SHELL", ""))
        return self.translator.translate(text, context)

    def submit(self, text: str, command: Optional[str] = None) -> SessionOutcome:
        """Propose a command and either run it or park it for confirmation.

        Args:
            text: What the user typed
            command: Already-translated command; translated from ``text`` when None

        Returns:
            SessionOutcome; ``awaiting_confirmation`` is True when the
            command now occupies the pending slot
        """
        command_text = command if command is not None else self.translate(text)
        verdict = self.classifier.classify(command_text, self.config)
        decision = decide(verdict, ExecutionMode.INTERACTIVE)

        if self._pending is not None:
            discarded = self._pending
            logger.warning(
                f"Discarding unresolved command {discarded.id} ({discarded.command_text!r}) "
                f"in favour of a new proposal"
            )
            discarded.transition_to(CommandState.CANCELLED)
            self._pending = None

        proposal = PendingCommand(
            id=self._id_factory(),
            origin_input=text,
            command_text=command_text,
            verdict=verdict,
        )

        if decision.auto_approved:
            proposal.transition_to(CommandState.AUTO_APPROVED)
            outcome = self._run(proposal)
            outcome.decision = decision
            return outcome

        proposal.transition_to(CommandState.PENDING_CONFIRMATION)
        self._pending = proposal
        return SessionOutcome(command=proposal, decision=decision, message=decision.reason)

    # -------------------------------------------------------------------------
    # Confirmation actions
    # -------------------------------------------------------------------------

    def _take_pending(self, action: str) -> PendingCommand:
        if self._pending is None:
            raise NoPendingCommandError(action)
        pending = self._pending
        self._pending = None
        return pending

    def confirm(self) -> SessionOutcome:
        """Run the pending command."""
        return self._run(self._take_pending("confirm"))

    def cancel(self) -> PendingCommand:
        """Discard the pending command without running it."""
        pending = self._take_pending("cancel")
        pending.transition_to(CommandState.CANCELLED)
        logger.debug(f"Cancelled command {pending.id}")
        return pending

    def edit(self) -> str:
        """Discard the pending command and return its text as a draft."""
        pending = self._take_pending("edit")
        pending.transition_to(CommandState.EDITED)
        return pending.command_text

    def copy(self, clipboard: Clipboard) -> str:
        """Copy the pending command to the clipboard. The command stays pending."""
        if self._pending is None:
            raise NoPendingCommandError("copy")
        clipboard.copy(self._pending.command_text)
        return self._pending.command_text

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _run(self, pending: PendingCommand) -> SessionOutcome:
        if self.dry_run:
            logger.debug(f"Dry run, not executing command {pending.id}")
            return SessionOutcome(
                command=pending,
                message=f"{DRY_RUN_PREFIX}{pending.command_text}",
                exit_code=0,
                dry_run=True,
            )

        target = parse_cd_target(pending.command_text)
        if target is not None:
            return self._change_directory(pending, target)

        try:
            result = self.executor.run(pending.command_text, cwd=self.cwd)
        except ExecutionFailureError as e:
            return self._fail(pending, e)
        except Exception as e:
            logger.error(f"Executor raised {type(e).__name__} for command {pending.id}: {e}")
            return self._fail(
                pending,
                ExecutionFailureError(
                    str(e) or type(e).__name__, command=pending.command_text, cause=e
                ),
            )

        pending.transition_to(CommandState.EXECUTED if result.succeeded else CommandState.FAILED)
        self._record(pending, result.output)
        return SessionOutcome(
            command=pending,
            message=result.output or EMPTY_OUTPUT_MESSAGE,
            exit_code=result.exit_code,
        )

    def _fail(self, pending: PendingCommand, error: ExecutionFailureError) -> SessionOutcome:
        pending.transition_to(CommandState.FAILED)
        return SessionOutcome(command=pending, message=f"Error: {error.message}", exit_code=1)

    def _change_directory(self, pending: PendingCommand, target: str) -> SessionOutcome:
        path = Path(target).expanduser()
        if not path.is_absolute():
            path = Path(self.cwd) / path
        try:
            resolved = path.resolve(strict=True)
            if not resolved.is_dir():
                raise NotADirectoryError(f"not a directory: {target}")
        except OSError as e:
            pending.transition_to(CommandState.FAILED)
            return SessionOutcome(command=pending, message=f"cd: {e}", exit_code=1)

        self.cwd = str(resolved)
        pending.transition_to(CommandState.EXECUTED)
        self._record(pending, f"Changed to {self.cwd}")
        return SessionOutcome(
            command=pending,
            message=f"Changed directory to {self.cwd}",
            exit_code=0,
        )

    def _record(self, pending: PendingCommand, output: str) -> None:
        if self.history is None:
            return
        try:
            self.history.add(
                HistoryEntry(
                    input=pending.origin_input,
                    command=pending.command_text,
                    output=output,
                )
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to save history: {e}")

