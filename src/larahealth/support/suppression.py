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

"""Inline suppression comments.

A PHP comment containing ``@larahealth-ignore`` on the offending line
or the line above it hides the issue::

    // @larahealth-ignore
    $user->undefinedMethod();

    // @larahealth-ignore invalid-method-calls,dead-code
    $user->undefinedMethod();

The bare form silences every analyzer; an id list silences only those.
"""

from __future__ import annotations

import re
from pathlib import Path

_MARKER = re.compile(r'@larahealth-ignore(?:[ \t]+([\w,-]+))?', re.IGNORECASE)


class InlineSuppressionParser:
    """Check source lines for ``@larahealth-ignore`` markers.

    File contents are cached per instance, so one parser should be used
    for a whole run.
    """

    def __init__(self) -> None:
        """Start with an empty file cache."""
        self._cache: dict[str, list[str]] = {}

    def _lines(self, file_path: Path | str) -> list[str]:
        key = str(file_path)
        if key not in self._cache:
            path = Path(file_path)
            try:
                self._cache[key] = path.read_text(encoding='utf-8', errors='replace').split('\n') if path.is_file() else []
            except OSError:
                self._cache[key] = []
        return self._cache[key]

    @staticmethod
    def line_has_suppression(text: str, analyzer_id: str) -> bool:
        """Return True if ``text`` carries a marker that covers ``analyzer_id``."""
        match = _MARKER.search(text)
        if match is None:
            return False
        if match.group(1) is None:
            return True
        ids = [part.strip() for part in match.group(1).split(',')]
        return analyzer_id in ids

    def is_line_suppressed(self, file_path: Path | str, line: int, analyzer_id: str) -> bool:
        """Return True if the issue at ``file_path:line`` is suppressed for ``analyzer_id``."""
        if line < 1:
            return False
        lines = self._lines(file_path)
        for index in (line - 1, line - 2):
            if 0 <= index < len(lines) and self.line_has_suppression(lines[index], analyzer_id):
                return True
        return False


__all__ = ['InlineSuppressionParser']
