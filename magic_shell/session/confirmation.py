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

"""Lifecycle of a proposed command.

    PROPOSED ──► AUTO_APPROVED ─────────► EXECUTED | FAILED
        │
        └──────► PENDING_CONFIRMATION ──► EXECUTED | FAILED | CANCELLED | EDITED

EXECUTED, FAILED, CANCELLED and EDITED are terminal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from magic_shell.core.errors import IllegalTransitionError
from magic_shell.safety.classifier import SafetyVerdict

logger = logging.getLogger(__name__)


class CommandState(Enum):
    """State of a proposed command."""

    PROPOSED = "proposed"
    AUTO_APPROVED = "auto_approved"
    PENDING_CONFIRMATION = "pending_confirmation"
    EXECUTED = "executed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EDITED = "edited"


TRANSITION_GRAPH: dict[CommandState, set[CommandState]] = {
    CommandState.PROPOSED: {
        CommandState.AUTO_APPROVED,
        CommandState.PENDING_CONFIRMATION,
    },
    CommandState.AUTO_APPROVED: {
        CommandState.EXECUTED,
        CommandState.FAILED,
    },
    CommandState.PENDING_CONFIRMATION: {
        CommandState.EXECUTED,
        CommandState.FAILED,
        CommandState.CANCELLED,
        CommandState.EDITED,
    },
    CommandState.EXECUTED: set(),  # Terminal state
    CommandState.FAILED: set(),  # Terminal state
    CommandState.CANCELLED: set(),  # Terminal state
    CommandState.EDITED: set(),  # Terminal state
}

TERMINAL_STATES = frozenset(state for state, targets in TRANSITION_GRAPH.items() if not targets)


def can_transition(current: CommandState, target: CommandState) -> bool:
    return target in TRANSITION_GRAPH.get(current, set())


@dataclass
class PendingCommand:
    """A command proposed in a session, with its verdict and current state."""

    id: str
    origin_input: str
    command_text: str
    verdict: SafetyVerdict
    state: CommandState = CommandState.PROPOSED
    history: List[CommandState] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition_to(self, new_state: CommandState) -> None:
        """Move to ``new_state``.

        Raises:
            IllegalTransitionError: If the graph does not allow the move
        """
        if not can_transition(self.state, new_state):
            raise IllegalTransitionError(
                f"Cannot move command {self.id} from {self.state.value} to {new_state.value}"
            )
        logger.debug(f"Command {self.id}: {self.state.value} -> {new_state.value}")
        self.history.append(self.state)
        self.state = new_state
