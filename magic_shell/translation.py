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

"""Natural language to shell command translation interface.

Only the interface and a pass-through implementation live here. Text that
already looks like a shell command is never sent to a translator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, runtime_checkable

DIRECT_COMMANDS = frozenset(
    {
        "ls",
        "pwd",
        "cd",
        "cat",
        "echo",
        "mkdir",
        "touch",
        "rm",
        "cp",
        "mv",
        "git",
        "npm",
        "bun",
        "node",
        "python",
        "pip",
        "brew",
        "apt",
        "docker",
        "kubectl",
    }
)

DIRECT_PREFIXES = ("./", "/", "~")


@dataclass
class TranslationContext:
    """What a translator may know about the caller."""

    cwd: str = ""
    shell: str = ""
    platform: str = ""
    extra: Dict[str, str] = field(default_factory=dict)


@runtime_checkable
class Translator(Protocol):
    """Turns a natural-language request into a single shell command."""

    def translate(self, text: str, context: Optional[TranslationContext] = None) -> str: ...


class PassthroughTranslator:
    """Returns the input unchanged (trimmed). Used for direct commands."""

    def translate(self, text: str, context: Optional[TranslationContext] = None) -> str:
        return text.strip()


def is_direct_command(text: str) -> bool:
    """Whether ``text`` should be run as typed instead of translated.

    Examples:
        >>> is_direct_command("git status")
        True
        >>> is_direct_command("./build.sh")
        True
        >>> is_direct_command("list all files")
        False
    """
    trimmed = text.strip()
    if not trimmed:
        return False
    if trimmed.startswith(DIRECT_PREFIXES):
        return True
    first_word = trimmed.split()[0].lower()
    return first_word in DIRECT_COMMANDS
