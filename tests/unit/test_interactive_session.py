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


"""Tests for InteractiveSession."""

import itertools
import logging
from unittest.mock import MagicMock

import pytest

from magic_shell.config.settings import ShellConfig
from magic_shell.config.store import HistoryStore
from magic_shell.core.errors import ClipboardError, ExecutionFailureError, NoPendingCommandError
from magic_shell.execution.adapter import ExecutionResult, SubprocessExecutor
from magic_shell.safety.levels import Severity
from magic_shell.safety.policy import GateAction
from magic_shell.session.confirmation import CommandState
from magic_shell.session.interactive import InteractiveSession, parse_cd_target


@pytest.fixture
def history(config_dir):
    return HistoryStore(config_dir)


@pytest.fixture
def session(open_config, mock_executor, history, tmp_path):
    counter = itertools.count(1)
    return InteractiveSession(
        config=open_config,
        executor=mock_executor,
        history=history,
        cwd=tmp_path,
        dry_run=False,
        id_factory=lambda: f"cmd-{next(counter)}",
    )


class TestSubmit:
    """Tests for proposing commands."""

    def test_safe_command_auto_approved_and_executed(self, session, mock_executor):
        outcome = session.submit("ls -la")
        assert outcome.decision.action == GateAction.EXECUTE
        assert outcome.command.state == CommandState.EXECUTED
        assert outcome.command.history == [CommandState.PROPOSED, CommandState.AUTO_APPROVED]
        assert outcome.exit_code == 0
        assert outcome.message == "ok\n"
        assert session.pending is None
        mock_executor.run.assert_called_once_with("ls -la", cwd=session.cwd)

    def test_dangerous_command_waits(self, session, mock_executor):
        outcome = session.submit("rm -rf build")
        assert outcome.awaiting_confirmation
        assert outcome.decision.action == GateAction.CONFIRM
        assert outcome.command.verdict.severity == Severity.HIGH
        assert session.pending is outcome.command
        mock_executor.run.assert_not_called()

    def test_explicit_command_skips_translation(self, session):
        translator = MagicMock()
        session.translator = translator
        outcome = session.submit("show files", command="ls")
        assert outcome.command.command_text == "ls"
        assert outcome.command.origin_input == "show files"
        translator.translate.assert_not_called()

    def test_natural_language_goes_through_translator(self, session, mock_executor):
        translator = MagicMock()
        translator.translate.return_value = "du -sh ."
        session.translator = translator
        outcome = session.submit("show disk usage")
        assert outcome.command.command_text == "du -sh ."
        context = translator.translate.call_args[0][1]
        assert context.cwd == session.cwd

    def test_direct_command_not_translated(self, session):
        translator = MagicMock()
        session.translator = translator
        session.submit("git status")
        translator.translate.assert_not_called()

    def test_new_proposal_replaces_pending(self, session, caplog):
        first = session.submit("rm -rf build").command
        with caplog.at_level(logging.WARNING):
            second = session.submit("rm -rf dist").command
        assert session.pending is second
        assert first.state == CommandState.CANCELLED
        assert first.id != second.id
        assert "Discarding unresolved command cmd-1" in caplog.text

    def test_ids_are_per_session(self, open_config, mock_executor):
        a = InteractiveSession(config=open_config, executor=mock_executor)
        b = InteractiveSession(config=open_config, executor=mock_executor)
        a.submit("rm -rf build")
        assert b.pending is None

    def test_policy_change_applies_to_next_proposal(self, session):
        session.update_config(ShellConfig(safety_level="relaxed", blocked_commands=[]))
        assert session.submit("rm -rf build").command.state == CommandState.EXECUTED


class TestConfirmationActions:
    """Tests for confirm / cancel / edit / copy."""

    def test_confirm_executes(self, session, mock_executor, history):
        session.submit("rm -rf build", command="rm -rf build")
        outcome = session.confirm()
        assert outcome.command.state == CommandState.EXECUTED
        assert session.pending is None
        mock_executor.run.assert_called_once()
        assert history.load()[0].command == "rm -rf build"

    def test_confirm_non_zero_exit_fails(self, session, mock_executor):
        mock_executor.run.return_value = ExecutionResult(exit_code=2, output="nope")
        session.submit("rm -rf build")
        outcome = session.confirm()
        assert outcome.command.state == CommandState.FAILED
        assert outcome.exit_code == 2
        assert session.pending is None

    def test_confirm_adapter_error_fails(self, session, mock_executor, history):
        mock_executor.run.side_effect = ExecutionFailureError("spawn failed", command="x")
        session.submit("rm -rf build")
        outcome = session.confirm()
        assert outcome.command.state == CommandState.FAILED
        assert outcome.exit_code == 1
        assert outcome.message == "Error: spawn failed"
        assert session.pending is None
        assert history.load() == []

    def test_confirm_unexpected_adapter_exception_fails(self, session, mock_executor, history):
        mock_executor.run.side_effect = RuntimeError("adapter exploded")
        session.submit("rm -rf build")
        outcome = session.confirm()
        assert outcome.command.state == CommandState.FAILED
        assert outcome.command.is_terminal
        assert outcome.exit_code == 1
        assert outcome.message == "Error: adapter exploded"
        assert session.pending is None
        assert history.load() == []

    def test_auto_approved_adapter_exception_fails(self, session, mock_executor):
        mock_executor.run.side_effect = ValueError()
        outcome = session.submit("ls")
        assert outcome.command.state == CommandState.FAILED
        assert outcome.message == "Error: ValueError"
        assert not outcome.awaiting_confirmation

    def test_undecodable_output_executes(self, open_config, history, tmp_path):
        session = InteractiveSession(
            config=open_config,
            executor=SubprocessExecutor(),
            history=history,
            cwd=tmp_path,
            dry_run=False,
        )
        outcome = session.submit("printf '\\377\\376'", command="printf '\\377\\376'")
        assert outcome.command.state == CommandState.EXECUTED
        assert outcome.exit_code == 0
        assert "\ufffd" in outcome.message
        assert history.load()[0].command == "printf '\\377\\376'"

    def test_unreadable_history_does_not_break_execution(self, session, config_dir, history):
        config_dir.mkdir(parents=True, exist_ok=True)
        (config_dir / "history.json").write_bytes(b"[\xff]")
        outcome = session.submit("ls")
        assert outcome.command.state == CommandState.EXECUTED
        assert [entry.command for entry in history.load()] == ["ls"]

    def test_empty_output_message(self, session, mock_executor):
        mock_executor.run.return_value = ExecutionResult(exit_code=0, output="")
        assert session.submit("ls").message == "Command completed successfully"

    def test_cancel(self, session, mock_executor):
        session.submit("rm -rf build")
        cancelled = session.cancel()
        assert cancelled.state == CommandState.CANCELLED
        assert session.pending is None
        mock_executor.run.assert_not_called()

    def test_edit_returns_draft(self, session, mock_executor):
        session.submit("rm -rf build")
        assert session.edit() == "rm -rf build"
        assert session.pending is None
        mock_executor.run.assert_not_called()

    def test_copy_keeps_pending(self, session):
        clipboard = MagicMock()
        pending = session.submit("rm -rf build").command
        session.copy(clipboard)
        session.copy(clipboard)
        assert clipboard.copy.call_count == 2
        clipboard.copy.assert_called_with("rm -rf build")
        assert session.pending is pending
        assert pending.state == CommandState.PENDING_CONFIRMATION

    def test_copy_failure_keeps_pending(self, session):
        clipboard = MagicMock()
        clipboard.copy.side_effect = ClipboardError("no xclip")
        session.submit("rm -rf build")
        with pytest.raises(ClipboardError):
            session.copy(clipboard)
        assert session.pending is not None

    @pytest.mark.parametrize("action", ["confirm", "cancel", "edit"])
    def test_actions_without_pending(self, session, action):
        with pytest.raises(NoPendingCommandError):
            getattr(session, action)()

    def test_copy_without_pending(self, session):
        with pytest.raises(NoPendingCommandError):
            session.copy(MagicMock())


class TestDryRun:
    """Tests for the session dry-run toggle."""

    def test_defaults_from_config(self, mock_executor):
        config = ShellConfig(dry_run_by_default=True)
        assert InteractiveSession(config=config, executor=mock_executor).dry_run is True

    def test_toggle(self, session):
        assert session.toggle_dry_run() is True
        assert session.toggle_dry_run() is False

    def test_auto_approved_not_executed(self, session, mock_executor, history):
        session.dry_run = True
        outcome = session.submit("ls -la")
        assert outcome.dry_run
        assert outcome.message == "[DRY RUN] Would execute: ls -la"
        assert outcome.command.state == CommandState.AUTO_APPROVED
        mock_executor.run.assert_not_called()
        assert history.load() == []

    def test_confirmed_not_executed(self, session, mock_executor):
        session.dry_run = True
        session.submit("rm -rf build")
        outcome = session.confirm()
        assert outcome.message == "[DRY RUN] Would execute: rm -rf build"
        assert outcome.command.state == CommandState.PENDING_CONFIRMATION
        assert not outcome.awaiting_confirmation
        assert session.pending is None
        mock_executor.run.assert_not_called()

    def test_cd_is_not_applied(self, session, tmp_path, mock_executor, history):
        (tmp_path / "sub").mkdir()
        session.dry_run = True
        before = session.cwd
        outcome = session.submit("cd sub")
        assert outcome.dry_run
        assert outcome.message == "[DRY RUN] Would execute: cd sub"
        assert outcome.command.state == CommandState.AUTO_APPROVED
        assert session.cwd == before
        mock_executor.run.assert_not_called()
        assert history.load() == []


class TestChangeDirectory:
    """Tests for in-process cd handling."""

    def test_parse_cd_target(self):
        assert parse_cd_target("cd src") == "src"
        assert parse_cd_target('cd "my dir"') == "my dir"
        assert parse_cd_target("cd 'x'") == "x"
        assert parse_cd_target("ls") is None
        assert parse_cd_target("cdrom") is None

    def test_cd_relative(self, session, tmp_path, mock_executor, history):
        (tmp_path / "src").mkdir()
        outcome = session.submit("cd src")
        expected = str((tmp_path / "src").resolve())
        assert session.cwd == expected
        assert outcome.message == f"Changed directory to {expected}"
        assert outcome.command.state == CommandState.EXECUTED
        mock_executor.run.assert_not_called()
        assert history.load()[0].output == f"Changed to {expected}"

    def test_cd_home(self, session, monkeypatch, tmp_path):
        home = tmp_path / "home"
        home.mkdir()
        monkeypatch.setenv("HOME", str(home))
        session.submit("cd ~")
        assert session.cwd == str(home.resolve())

    def test_cd_missing_directory(self, session, tmp_path):
        before = session.cwd
        outcome = session.submit("cd does-not-exist")
        assert outcome.exit_code == 1
        assert outcome.message.startswith("cd: ")
        assert outcome.command.state == CommandState.FAILED
        assert session.cwd == before

    def test_cd_to_file(self, session, tmp_path):
        (tmp_path / "notes.txt").write_text("x")
        outcome = session.submit("cd notes.txt")
        assert outcome.exit_code == 1
        assert outcome.command.state == CommandState.FAILED

    def test_commands_run_in_session_cwd(self, session, tmp_path, mock_executor):
        (tmp_path / "src").mkdir()
        session.submit("cd src")
        session.submit("ls")
        mock_executor.run.assert_called_once_with("ls", cwd=str((tmp_path / "src").resolve()))
