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


"""Shared pytest fixtures and configuration."""

import logging
import os
from unittest.mock import MagicMock

import pytest

from magic_shell.config.settings import ShellConfig
from magic_shell.execution.adapter import ExecutionResult


@pytest.fixture(autouse=True)
def isolate_environment_variables(monkeypatch, tmp_path):
    """Isolate tests from MAGIC_SHELL_* variables, .env files and ~/.magic-shell.

    Every test gets its own config directory under tmp_path.
    """
    for var in list(os.environ):
        if var.startswith("MAGIC_SHELL_"):
            monkeypatch.delenv(var, raising=False)

    monkeypatch.setenv("MAGIC_SHELL_SKIP_ENV_FILE", "1")
    monkeypatch.setenv("MAGIC_SHELL_CONFIG_DIR", str(tmp_path / "magic-shell"))


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers.copy()
    original_level = root.level
    yield
    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture
def config_dir(tmp_path):
    """The config directory the isolated environment points at."""
    return tmp_path / "magic-shell"


@pytest.fixture
def open_config():
    """Moderate policy with an empty blocked list, so the rule tiers decide."""
    return ShellConfig(blocked_commands=[])


@pytest.fixture
def mock_executor():
    """Execution adapter that succeeds without spawning anything."""
    executor = MagicMock()
    executor.run.return_value = ExecutionResult(exit_code=0, output="ok\n", cwd="/tmp")
    return executor
