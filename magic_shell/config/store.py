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

"""Persistent stores for the safety policy and command history.

Directory structure:
    ~/.magic-shell/
    ├── config.yaml     # ShellConfig (safety level, blocked/confirmed lists)
    └── history.json    # Last N executed commands

Loading never raises: a missing, unreadable or malformed file yields the
documented defaults and a logged warning.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from magic_shell.config.settings import ShellConfig
from magic_shell.core.errors import ConfigurationError
from magic_shell.safety.levels import SafetyLevel, parse_safety_level

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"
LEGACY_CONFIG_FILE_NAME = "config.json"
HISTORY_FILE_NAME = "history.json"

# Keys used by the JSON config of earlier releases
_LEGACY_KEYS = {
    "safetyLevel": "safety_level",
    "blockedCommands": "blocked_commands",
    "confirmedDangerousPatterns": "confirmed_dangerous_patterns",
    "dryRunByDefault": "dry_run_by_default",
}


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_LEGACY_KEYS.get(key, key): value for key, value in data.items()}


class ConfigStore:
    """Loads and saves the user's ShellConfig."""

    def __init__(self, config_dir: Union[str, Path]):
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / CONFIG_FILE_NAME
        self.legacy_config_file = self.config_dir / LEGACY_CONFIG_FILE_NAME

    def _read_raw(self) -> Optional[Dict[str, Any]]:
        if self.config_file.exists():
            with open(self.config_file, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        if self.legacy_config_file.exists():
            with open(self.legacy_config_file, "r", encoding="utf-8") as f:
                return json.load(f)
        return None

    def load(self) -> ShellConfig:
        """Load the config, falling back to defaults on any problem."""
        try:
            data = self._read_raw()
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read config, using defaults: {e}")
            return ShellConfig()

        if data is None:
            return ShellConfig()
        if not isinstance(data, dict):
            logger.warning(
                f"Config file {self.config_file} is not a mapping, using defaults"
            )
            return ShellConfig()

        data = _normalize_keys(data)
        level = data.get("safety_level")
        if level is not None and parse_safety_level(level) is None:
            logger.warning(f"Unknown safety level '{level}', using moderate")

        try:
            return ShellConfig.model_validate(data)
        except ValidationError as e:
            invalid = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
            logger.warning(f"Invalid config values for {', '.join(sorted(invalid))}, using defaults")
            valid = {key: value for key, value in data.items() if key not in invalid}
            try:
                return ShellConfig.model_validate(valid)
            except ValidationError:
                return ShellConfig()

    def save(self, config: ShellConfig) -> None:
        content = yaml.safe_dump(config.to_dict(), sort_keys=False, allow_unicode=True)
        _atomic_write(self.config_file, content)
        logger.debug(f"Saved config to {self.config_file}")

    # -------------------------------------------------------------------------
    # Mutators used by the CLI. Each loads, changes, saves and returns.
    # -------------------------------------------------------------------------

    def set_safety_level(self, level: Union[str, SafetyLevel]) -> ShellConfig:
        parsed = parse_safety_level(level)
        if parsed is None:
            raise ConfigurationError(
                f"Unknown safety level: {level}",
                config_key="safety_level",
                valid_values=[lvl.value for lvl in SafetyLevel],
            )
        config = self.load()
        config.safety_level = parsed
        self.save(config)
        return config

    def set_dry_run_by_default(self, enabled: bool) -> ShellConfig:
        config = self.load()
        config.dry_run_by_default = enabled
        self.save(config)
        return config

    def add_blocked_command(self, entry: str) -> ShellConfig:
        return self._add_entry("blocked_commands", entry)

    def remove_blocked_command(self, entry: str) -> ShellConfig:
        return self._remove_entry("blocked_commands", entry)

    def add_confirmed_pattern(self, entry: str) -> ShellConfig:
        return self._add_entry("confirmed_dangerous_patterns", entry)

    def remove_confirmed_pattern(self, entry: str) -> ShellConfig:
        return self._remove_entry("confirmed_dangerous_patterns", entry)

    def _add_entry(self, key: str, entry: str) -> ShellConfig:
        if not entry or not entry.strip():
            raise ConfigurationError("Pattern cannot be empty", config_key=key)
        config = self.load()
        entries = list(getattr(config, key))
        if entry not in entries:
            entries.append(entry)
            setattr(config, key, entries)
            self.save(config)
        return config

    def _remove_entry(self, key: str, entry: str) -> ShellConfig:
        config = self.load()
        entries = list(getattr(config, key))
        if entry not in entries:
            raise ConfigurationError(f"Pattern not found: {entry}", config_key=key)
        entries.remove(entry)
        setattr(config, key, entries)
        self.save(config)
        return config


@dataclass
class HistoryEntry:
    """One executed command."""

    input: str
    command: str
    output: str = ""
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            input=str(data.get("input", "")),
            command=str(data.get("command", "")),
            output=str(data.get("output", "")),
            timestamp=int(data.get("timestamp", 0) or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class HistoryStore:
    """Append-only command history capped at ``limit`` entries."""

    def __init__(
        self,
        config_dir: Union[str, Path],
        limit: int = 100,
        output_chars: int = 500,
    ):
        self.history_file = Path(config_dir) / HISTORY_FILE_NAME
        self.limit = limit
        self.output_chars = output_chars

    def load(self) -> List[HistoryEntry]:
        if not self.history_file.exists():
            return []
        try:
            with open(self.history_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read history, starting fresh: {e}")
            return []
        if not isinstance(data, list):
            return []
        entries: List[HistoryEntry] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                entries.append(HistoryEntry.from_dict(item))
            except (TypeError, ValueError):
                continue
        return entries

    def add(self, entry: HistoryEntry) -> None:
        entry.output = entry.output[: self.output_chars]
        history = self.load()
        history.append(entry)
        self._save(history)

    def clear(self) -> None:
        self._save([])

    def _save(self, history: List[HistoryEntry]) -> None:
        trimmed = history[-self.limit :]
        _atomic_write(
            self.history_file,
            json.dumps([e.to_dict() for e in trimmed], indent=2, ensure_ascii=False),
        )
