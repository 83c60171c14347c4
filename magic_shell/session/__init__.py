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


"""Session module - confirmation state machine and interactive session."""

from magic_shell.session.confirmation import (
    TRANSITION_GRAPH,
    CommandState,
    PendingCommand,
)
from magic_shell.session.interactive import InteractiveSession, SessionOutcome

__all__ = [
    "TRANSITION_GRAPH",
    "CommandState",
    "InteractiveSession",
    "PendingCommand",
    "SessionOutcome",
]
