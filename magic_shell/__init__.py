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


"""
magic-shell - Natural language to shell commands, with a safety gate.

Every proposed command is classified against a rule catalog and the user's
blocked/allowed lists before anything runs.

Simple API:
    from magic_shell import classify_command

    verdict = classify_command("rm -rf /")
    verdict.is_dangerous   # True
    verdict.severity       # Severity.CRITICAL

Interactive API:
    from magic_shell import InteractiveSession

    session = InteractiveSession()
    outcome = session.submit("sudo rm important.txt")
    if outcome.awaiting_confirmation:
        session.cancel()
"""

__version__ = "0.2.0"
__author__ = "Vijaykumar Singh"
__email__ = "singhvjd@gmail.com"
__license__ = "Apache-2.0"

from magic_shell.safety.classifier import (
    RiskClassifier,
    SafetyVerdict,
    classify_command,
)
from magic_shell.safety.levels import SafetyLevel, Severity
from magic_shell.safety.policy import ExecutionMode, GateAction, GateDecision, decide
from magic_shell.config.settings import Settings, ShellConfig, load_settings
from magic_shell.core.errors import MagicShellError
from magic_shell.session.interactive import InteractiveSession

__all__ = [
    "__version__",
    "ExecutionMode",
    "GateAction",
    "GateDecision",
    "InteractiveSession",
    "MagicShellError",
    "RiskClassifier",
    "SafetyLevel",
    "SafetyVerdict",
    "Settings",
    "Severity",
    "ShellConfig",
    "classify_command",
    "decide",
    "load_settings",
]
