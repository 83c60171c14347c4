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


"""Configuration: process settings plus the persisted safety policy."""

from magic_shell.config.settings import Settings, ShellConfig, load_settings
from magic_shell.config.store import ConfigStore, HistoryEntry, HistoryStore

__all__ = [
    "ConfigStore",
    "HistoryEntry",
    "HistoryStore",
    "Settings",
    "ShellConfig",
    "load_settings",
]
