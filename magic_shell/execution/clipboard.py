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

"""System clipboard access through the platform copy utility."""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from typing import List, Optional

from magic_shell.core.errors import ClipboardError

logger = logging.getLogger(__name__)


def default_copy_command(platform: Optional[str] = None) -> List[str]:
    """pbcopy on macOS, xclip everywhere else."""
    platform = platform or sys.platform
    if platform == "darwin":
        return ["pbcopy"]
    return ["xclip", "-selection", "clipboard"]


class Clipboard:
    """Copies text by piping it into a clipboard utility."""

    def __init__(self, command: Optional[str] = None, timeout: float = 5.0):
        self.command = shlex.split(command) if command else default_copy_command()
        self.timeout = timeout

    def copy(self, text: str) -> None:
        try:
            subprocess.run(
                self.command,
                input=text,
                text=True,
                check=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ClipboardError(f"Clipboard utility not found: {self.command[0]}", cause=e) from e
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.strip() if e.stderr else str(e)
            raise ClipboardError(f"Clipboard copy failed: {error_msg}", cause=e) from e
        except (subprocess.TimeoutExpired, OSError) as e:
            raise ClipboardError(f"Clipboard copy failed: {e}", cause=e) from e
        logger.debug(f"Copied {len(text)} characters to clipboard")
