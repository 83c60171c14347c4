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


"""Safety module - severity scale and rule catalog.

The classifier and policy gate are imported from their own modules
(``magic_shell.safety.classifier``, ``magic_shell.safety.policy``).
"""

from magic_shell.safety.levels import (
    DEFAULT_SAFETY_LEVEL,
    SafetyLevel,
    Severity,
    parse_safety_level,
    resolve_safety_level,
)
from magic_shell.safety.patterns import PatternCatalog, Rule, get_catalog

__all__ = [
    "DEFAULT_SAFETY_LEVEL",
    "PatternCatalog",
    "Rule",
    "SafetyLevel",
    "Severity",
    "get_catalog",
    "parse_safety_level",
    "resolve_safety_level",
]
