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

"""Configuration management for magic-shell.

Two layers:

- ``Settings``: process-level settings read from ``MAGIC_SHELL_*``
  environment variables (config directory, logging, execution timeout).
- ``ShellConfig``: the user's persisted safety policy (safety level,
  blocked commands, confirmed patterns). Loaded by ``ConfigStore``; read-only
  to the risk classifier.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from magic_shell.safety.levels import DEFAULT_SAFETY_LEVEL, SafetyLevel, resolve_safety_level

# Global config directory (~/.magic-shell)
CONFIG_DIR_NAME = ".magic-shell"
GLOBAL_CONFIG_DIR = Path.home() / CONFIG_DIR_NAME

# Blocked out of the box. Each entry is an always-fatal substring.
DEFAULT_BLOCKED_COMMANDS: List[str] = [
    ":(){ :|:& };:",  # fork bomb
    "> /dev/sda",
    "mkfs",
    "dd if=/dev/zero",
    "chmod -R 777 /",
    "chown -R",
]


def _clean_patterns(value: Any) -> List[str]:
    """Keep only string entries; anything else in a pattern list is dropped."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


class ShellConfig(BaseModel):
    """User safety policy consumed by the risk classifier."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    safety_level: SafetyLevel = Field(
        DEFAULT_SAFETY_LEVEL, description="strict, moderate or relaxed"
    )
    blocked_commands: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BLOCKED_COMMANDS),
        description="Substrings that are always refused",
    )
    confirmed_dangerous_patterns: List[str] = Field(
        default_factory=list,
        description="Substrings the user has chosen to always allow (unless critical)",
    )
    dry_run_by_default: bool = Field(False, description="Start interactive sessions in dry-run")

    @field_validator("safety_level", mode="before")
    @classmethod
    def validate_safety_level(cls, v: Any) -> SafetyLevel:
        """Unknown levels fall back to MODERATE instead of failing."""
        return resolve_safety_level(v)

    @field_validator("blocked_commands", "confirmed_dangerous_patterns", mode="before")
    @classmethod
    def validate_patterns(cls, v: Any) -> List[str]:
        return _clean_patterns(v)

    @field_validator("dry_run_by_default", mode="before")
    @classmethod
    def validate_dry_run(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "on")
        return bool(v)

    def to_dict(self) -> dict:
        """Plain dict for YAML/JSON output."""
        data = self.model_dump()
        data["safety_level"] = self.safety_level.value
        return data


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="MAGIC_SHELL_",
        env_file=".env" if not os.getenv("MAGIC_SHELL_SKIP_ENV_FILE") else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Where config.yaml and history.json live
    config_dir: Path = GLOBAL_CONFIG_DIR

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    # Execution
    execution_timeout: Optional[float] = None  # seconds; None waits forever
    clipboard_command: Optional[str] = None  # e.g. "wl-copy"

    # History
    history_limit: int = Field(100, gt=0)
    history_output_chars: int = Field(500, gt=0)

    @field_validator("config_dir", mode="before")
    @classmethod
    def expand_config_dir(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


def load_settings() -> Settings:
    """Load application settings.

    Returns:
        Settings instance
    """
    return Settings()
