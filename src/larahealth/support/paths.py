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

"""Decide which project paths an analyzer should look at."""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from pathlib import Path


class PathFilter:
    """Filter project-relative paths by analyze roots and exclude globs.

    Args:
        analyze_paths: Roots to analyze (e.g. ``['app', 'routes']``).
            Empty means "everything not excluded".
        excluded_paths: :mod:`fnmatch` globs, matched case-insensitively
            against the whole relative path. ``*`` also crosses ``/``.
        base_path: Project root used to relativize absolute paths.
    """

    def __init__(
        self,
        analyze_paths: Iterable[str],
        excluded_paths: Iterable[str],
        base_path: Path | str | None = None,
    ) -> None:
        """Normalize roots and globs once."""
        self.analyze_paths = [p.replace('\\', '/').strip('/') for p in analyze_paths]
        self.excluded_paths = list(excluded_paths)
        self._excluded = [p.replace('\\', '/').lower() for p in self.excluded_paths]
        self._base = str(base_path).replace('\\', '/').rstrip('/') if base_path else ''

    def _relative(self, path: str) -> str:
        path = path.replace('\\', '/')
        if self._base and path.startswith(self._base + '/'):
            return path[len(self._base) + 1 :]
        return path

    def _matches_exclude(self, rel: str) -> bool:
        rel = rel.lower()
        return any(fnmatch.fnmatchcase(rel, pat) for pat in self._excluded)

    def is_excluded(self, path: str) -> bool:
        """Return True if ``path`` matches an exclude glob."""
        return self._matches_exclude(self._relative(path))

    def should_analyze(self, path: str) -> bool:
        """Return True if ``path`` is under an analyze root and not excluded."""
        rel = self._relative(path)
        if self._matches_exclude(rel):
            return False
        if not self.analyze_paths:
            return True
        return any(rel == root or rel.startswith(root + '/') for root in self.analyze_paths)

    def filter(self, paths: Iterable[str]) -> list[str]:
        """Keep only the paths :meth:`should_analyze` accepts."""
        return [p for p in paths if self.should_analyze(p)]


__all__ = ['PathFilter']
