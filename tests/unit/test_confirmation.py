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


"""Tests for the command confirmation state machine."""

import pytest

from magic_shell.core.errors import IllegalTransitionError
from magic_shell.safety.classifier import SafetyVerdict
from magic_shell.session.confirmation import (
    TERMINAL_STATES,
    TRANSITION_GRAPH,
    CommandState,
    PendingCommand,
    can_transition,
)


def _command(state=CommandState.PROPOSED):
    return PendingCommand(
        id="cmd-1",
        origin_input="clean up",
        command_text="rm -rf build",
        verdict=SafetyVerdict(is_dangerous=False),
        state=state,
    )


class TestTransitionGraph:
    """Tests for the transition table."""

    def test_graph_covers_every_state(self):
        for state in CommandState:
            assert state in TRANSITION_GRAPH

    def test_terminal_states(self):
        assert TERMINAL_STATES == {
            CommandState.EXECUTED,
            CommandState.FAILED,
            CommandState.CANCELLED,
            CommandState.EDITED,
        }

    @pytest.mark.parametrize(
        "current,target",
        [
            (CommandState.PROPOSED, CommandState.AUTO_APPROVED),
            (CommandState.PROPOSED, CommandState.PENDING_CONFIRMATION),
            (CommandState.AUTO_APPROVED, CommandState.EXECUTED),
            (CommandState.AUTO_APPROVED, CommandState.FAILED),
            (CommandState.PENDING_CONFIRMATION, CommandState.EXECUTED),
            (CommandState.PENDING_CONFIRMATION, CommandState.FAILED),
            (CommandState.PENDING_CONFIRMATION, CommandState.CANCELLED),
            (CommandState.PENDING_CONFIRMATION, CommandState.EDITED),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (CommandState.PROPOSED, CommandState.EXECUTED),
            (CommandState.AUTO_APPROVED, CommandState.CANCELLED),
            (CommandState.AUTO_APPROVED, CommandState.EDITED),
            (CommandState.EXECUTED, CommandState.FAILED),
            (CommandState.CANCELLED, CommandState.PENDING_CONFIRMATION),
            (CommandState.PENDING_CONFIRMATION, CommandState.PENDING_CONFIRMATION),
        ],
    )
    def test_disallowed_transitions(self, current, target):
        assert not can_transition(current, target)


class TestPendingCommand:
    """Tests for PendingCommand.transition_to."""

    def test_confirm_path(self):
        command = _command()
        command.transition_to(CommandState.PENDING_CONFIRMATION)
        command.transition_to(CommandState.EXECUTED)
        assert command.state == CommandState.EXECUTED
        assert command.is_terminal
        assert command.history == [CommandState.PROPOSED, CommandState.PENDING_CONFIRMATION]

    def test_illegal_transition_raises_and_keeps_state(self):
        command = _command(CommandState.AUTO_APPROVED)
        with pytest.raises(IllegalTransitionError):
            command.transition_to(CommandState.CANCELLED)
        assert command.state == CommandState.AUTO_APPROVED

    def test_terminal_state_is_final(self):
        command = _command(CommandState.CANCELLED)
        for state in CommandState:
            with pytest.raises(IllegalTransitionError):
                command.transition_to(state)
