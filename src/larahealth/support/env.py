# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Minimal dotenv parsing: keys only, with their line numbers.

Values are never needed by the analyzers (and may be secrets), so they
are not kept.
"""

from __future__ import annotations

import re
from pathlib import Path

_ACTIVE_KEY = re.compile(r'^([A-Z_][A-Z0-9_]*)\s*=')
_COMMENTED_KEY = re.compile(r'^#\s*([A-Z_][A-Z0-9_]*)\s*=')


def _read_lines(path: Path) -> list[str]:
    return path.read_text(encoding='utf-8').splitlines()


def parse_env_file(path: Path) -> dict[str, int]:
    """Return ``KEY -> line number`` for every active assignment.

    Blank lines and ``#`` comments are skipped; a key repeated later in
    the file keeps its first line.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not UTF-8.
    """
    keys: dict[str, int] = {}
    for lineno, raw in enumerate(_read_lines(path), 1):
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        match = _ACTIVE_KEY.match(line)
        if match:
            keys.setdefault(match.group(1), lineno)
    return keys


def parse_commented_env_keys(path: Path) -> dict[str, int]:
    """Return keys that only appear as ``# KEY=value`` lines.

    Read errors yield an empty mapping; the caller has already reported
    them while parsing the active keys.
    """
    try:
        lines = _read_lines(path)
    except (OSError, UnicodeDecodeError):
        return {}
    keys: dict[str, int] = {}
    for lineno, raw in enumerate(lines, 1):
        match = _COMMENTED_KEY.match(raw.strip())
        if match:
            keys.setdefault(match.group(1), lineno)
    return keys


__all__ = ['parse_commented_env_keys', 'parse_env_file']
