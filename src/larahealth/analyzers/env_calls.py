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

"""``env()`` calls outside ``config/``.

Once ``php artisan config:cache`` has run, Laravel no longer loads
``.env`` and every ``env()`` call outside a config file returns
``null``. The scan is line based::

    $key = env('STRIPE_KEY');        ← flagged, suggests config('custom.stripe_key')
    $obj->env('X');                  ← method call, ignored
    // env('X') in a comment         ← ignored
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path

from larahealth.analyzers._base import Analyzer
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Issue, Severity
from larahealth.support.paths import PathFilter
from larahealth.support.suggest import ConfigSuggester

SCAN_ROOTS: tuple[str, ...] = ('app', 'routes', 'database', 'resources/views')

_ENV_CALL = re.compile(r"""(?<![\w$>:\\])env\s*\(\s*(?:(['"])([^'"]*)\1)?""")
_COMMENT_PREFIXES = ('//', '#', '*', '/*')

_FILE_TYPES: tuple[tuple[str, str], ...] = (
    ('app/Http/Controllers/', 'controller'),
    ('app/Models/', 'model'),
    ('app/Services/', 'service'),
    ('routes/', 'route'),
    ('resources/views/', 'view'),
)


def file_type(relative_path: str) -> str:
    """Coarse kind of file, used in issue metadata."""
    for prefix, kind in _FILE_TYPES:
        if relative_path.startswith(prefix):
            return kind
    return 'application'


def find_env_calls(content: str) -> list[tuple[int, str | None]]:
    """Return ``(line, variable)`` for every ``env()`` call in PHP ``content``.

    ``variable`` is ``None`` when the first argument is not a string
    literal.
    """
    calls: list[tuple[int, str | None]] = []
    for lineno, raw in enumerate(content.splitlines(), 1):
        line = raw.strip()
        if line.startswith(_COMMENT_PREFIXES):
            continue
        for match in _ENV_CALL.finditer(line):
            calls.append((lineno, match.group(2) or None))
    return calls


class EnvCallAnalyzer(Analyzer):
    """Flags ``env()`` in application code."""

    metadata = AnalyzerMetadata(
        id='env-call-outside-config',
        name='Env Calls Outside Config',
        description='Detects env() function calls outside configuration files that break when config is cached',
        category=Category.PERFORMANCE,
        severity=Severity.HIGH,
        tags=('configuration', 'cache', 'performance', 'env'),
        docs_url='https://laravel.com/docs/configuration#configuration-caching',
        time_to_fix=15,
    )

    def _php_files(self) -> Iterator[Path]:
        path_filter = PathFilter([], self.ctx.settings.excluded_paths, self.base_path)
        for root in SCAN_ROOTS:
            directory = self.ctx.path(root)
            if not directory.is_dir():
                continue
            for path in sorted(directory.rglob('*.php')):
                rel = self.relative(path)
                if rel.startswith('config/') or not path_filter.should_analyze(rel):
                    continue
                yield path

    def run_analysis(self) -> AnalysisResult:
        """Scan the application code for ``env()``."""
        issues: list[Issue] = []
        for path in self._php_files():
            try:
                content = path.read_text(encoding='utf-8', errors='replace')
            except OSError:
                continue
            rel = self.relative(path)
            for line, variable in find_env_calls(content):
                issues.append(
                    self.issue(
                        'env() call detected outside configuration files',
                        file=rel,
                        line=line,
                        severity=Severity.HIGH,
                        recommendation=ConfigSuggester.recommendation(variable),
                        function='env',
                        variable=variable,
                        file_type=file_type(rel),
                    )
                )

        if not issues:
            return self.passed('No env() calls detected outside configuration files')
        return self.failed(f'Found {len(issues)} env() calls outside configuration files', issues)


__all__ = ['EnvCallAnalyzer', 'find_env_calls']
