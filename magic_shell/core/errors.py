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

"""Centralized error types for magic-shell.

This module provides:
- Error categories used to classify failures
- A base exception carrying a correlation ID and recovery hint
- Concrete errors for policy refusals, execution failures, invalid
  configuration input and invalid session state

The risk classifier never raises. Everything here is raised by the layers
around it: the policy gate, the execution adapter, the session and the CLI.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from magic_shell.safety.classifier import SafetyVerdict


# =============================================================================
# Error Categories
# =============================================================================


class ErrorCategory(Enum):
    """Categories of errors for classification and handling."""

    POLICY_REFUSAL = "policy_refusal"
    EXECUTION_FAILURE = "execution_failure"
    EXECUTION_TIMEOUT = "execution_timeout"
    CONFIG_INVALID = "config_invalid"
    INVALID_STATE = "invalid_state"
    CLIPBOARD = "clipboard"
    UNKNOWN = "unknown"


# =============================================================================
# Custom Exception Types
# =============================================================================


class MagicShellError(Exception):
    """Base exception for all magic-shell errors.

    Provides structured error information including:
    - Error category
    - Correlation ID for tracking
    - Recovery suggestion
    - Original exception chain
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        details: Optional[Dict[str, Any]] = None,
        recovery_hint: Optional[str] = None,
        correlation_id: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.details = details or {}
        self.recovery_hint = recovery_hint
        self.correlation_id = correlation_id or str(uuid.uuid4())[:8]
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.message,
            "category": self.category.value,
            "correlation_id": self.correlation_id,
            "recovery_hint": self.recovery_hint,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        result = f"[{self.correlation_id}] {self.message}"
        if self.recovery_hint:
            result += f"\nRecovery hint: {self.recovery_hint}"
        return result


class PolicyRefusalError(MagicShellError):
    """A command was classified dangerous and the active mode forbids running it."""

    def __init__(
        self,
        command: str,
        verdict: "SafetyVerdict",
        **kwargs: Any,
    ):
        super().__init__(
            verdict.reason or f"Refusing to run {verdict.severity.value} severity command",
            category=ErrorCategory.POLICY_REFUSAL,
            recovery_hint="Use -n to preview, or run the command manually.",
            **kwargs,
        )
        self.command = command
        self.verdict = verdict
        self.details["command"] = command
        self.details["severity"] = verdict.severity.value
        self.details["patterns"] = list(verdict.patterns)


class ExecutionFailureError(MagicShellError):
    """The execution adapter could not run the command."""

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        exit_code: Optional[int] = None,
        **kwargs: Any,
    ):
        kwargs.setdefault("category", ErrorCategory.EXECUTION_FAILURE)
        super().__init__(message, **kwargs)
        self.command = command
        self.exit_code = exit_code
        self.details["command"] = command
        self.details["exit_code"] = exit_code


class ExecutionTimeoutError(ExecutionFailureError):
    """Command did not finish within the configured timeout."""

    def __init__(self, command: str, timeout: float, **kwargs: Any):
        super().__init__(
            f"Command timed out after {timeout:g} seconds",
            command=command,
            category=ErrorCategory.EXECUTION_TIMEOUT,
            recovery_hint="Raise MAGIC_SHELL_EXECUTION_TIMEOUT or run the command manually.",
            **kwargs,
        )
        self.timeout = timeout
        self.details["timeout"] = timeout


class ConfigurationError(MagicShellError):
    """Invalid configuration supplied by the user."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        valid_values: Optional[List[str]] = None,
        **kwargs: Any,
    ):
        if valid_values and "recovery_hint" not in kwargs:
            kwargs["recovery_hint"] = f"Valid values: {', '.join(valid_values)}"
        super().__init__(
            message,
            category=ErrorCategory.CONFIG_INVALID,
            **kwargs,
        )
        self.config_key = config_key
        self.valid_values = valid_values or []
        self.details["config_key"] = config_key


class IllegalTransitionError(MagicShellError):
    """A command state change that the confirmation state machine does not allow."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, category=ErrorCategory.INVALID_STATE, **kwargs)


class NoPendingCommandError(MagicShellError):
    """A confirmation action was requested while nothing is pending."""

    def __init__(self, action: str, **kwargs: Any):
        super().__init__(
            f"No command is awaiting confirmation ({action})",
            category=ErrorCategory.INVALID_STATE,
            **kwargs,
        )
        self.action = action
        self.details["action"] = action


class ClipboardError(MagicShellError):
    """Copying to the system clipboard failed."""

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault(
            "recovery_hint",
            "Install pbcopy (macOS) or xclip (Linux), or set MAGIC_SHELL_CLIPBOARD_COMMAND.",
        )
        super().__init__(message, category=ErrorCategory.CLIPBOARD, **kwargs)
