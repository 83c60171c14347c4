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

"""Execution adapter: runs an approved command in a shell.

The adapter is only ever handed commands that the policy gate approved or
a human confirmed. It never classifies anything itself.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from magic_shell.core.errors import ExecutionFailureError, ExecutionTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running one command."""

    exit_code: int
    output: str = ""
    cwd: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@runtime_checkable
class ExecutionAdapter(Protocol):
    """Anything that can run a shell command and report its exit code."""

    def run(self, command: str, cwd: Union[str, Path, None] = None) -> ExecutionResult: ...


class SubprocessExecutor:
    """Runs commands with ``subprocess.run(..., shell=True)``.

    Args:
        timeout: Seconds before the command is abandoned (None waits forever)
        stream: Inherit the terminal's stdout/stderr instead of capturing.
            The one-shot CLI streams; the interactive session captures so it
            can render the output itself.
    """

    def __init__(self, timeout: Optional[float] = None, stream: bool = False):
        self.timeout = timeout
        self.stream = stream

    def run(self, command: str, cwd: Union[str, Path, None] = None) -> ExecutionResult:
        workdir = str(cwd) if cwd is not None else os.getcwd()
        logger.debug(f"Executing in {workdir}: {command}")

        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=workdir,
                env=os.environ.copy(),
                capture_output=not self.stream,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Command timed out after {self.timeout}s: {command}")
            raise ExecutionTimeoutError(command, self.timeout or 0, cause=e) from e
        except OSError as e:
            logger.error(f"Failed to start command: {e}")
            raise ExecutionFailureError(str(e), command=command, cause=e) from e

        exit_code = completed.returncode
        if self.stream:
            output = ""
        else:
            output = completed.stdout or completed.stderr or ""
            if not output and exit_code != 0:
                output = f"Command exited with code {exit_code}"

        if exit_code != 0:
            logger.info(f"Command exited with code {exit_code}: {command}")
        return ExecutionResult(exit_code=exit_code, output=output, cwd=workdir)
