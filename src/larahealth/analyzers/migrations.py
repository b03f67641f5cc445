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

"""Pending migrations, via ``php artisan migrate:status --pending``."""

from __future__ import annotations

import re

from larahealth._run import TimeoutExpired
from larahealth.analyzers._base import Analyzer
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Severity
from larahealth.support.sanitize import sanitize_error_message

NO_PENDING_MESSAGE = 'No pending migrations.'

_PENDING = re.compile(r'Pending\s+(.+)')

_DATABASE_ERROR_PATTERNS: tuple[str, ...] = (
    'connection',
    'could not find driver',
    'access denied',
    'unknown database',
    'connection refused',
    'sqlstate',
    'pdoexception',
    'queryexception',
)


def parse_pending(output: str) -> list[str]:
    """Migration names from ``Pending <name>`` rows."""
    pending: list[str] = []
    for line in output.splitlines():
        match = _PENDING.search(line)
        if match:
            name = match.group(1).strip()
            if name:
                pending.append(name)
    return pending


def is_database_error(message: str) -> bool:
    """Whether an artisan failure looks like a database connectivity problem."""
    lowered = message.lower()
    return any(p in lowered for p in _DATABASE_ERROR_PATTERNS)


class UpToDateMigrationsAnalyzer(Analyzer):
    """Every migration shipped with the code should have been run."""

    metadata = AnalyzerMetadata(
        id='up-to-date-migrations',
        name='Up-to-Date Migrations Analyzer',
        description='Ensures all database migrations are up to date and have been executed',
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=('database', 'migrations', 'reliability', 'deployment'),
        docs_url='https://laravel.com/docs/migrations#running-migrations',
        time_to_fix=5,
    )
    run_in_ci = False

    def _failure(self, error: str) -> AnalysisResult:
        migrations = self.ctx.path('database', 'migrations')
        sanitized = sanitize_error_message(error)
        if is_database_error(error):
            return self.failed(
                'Database connection error while checking migration status',
                [
                    self.issue(
                        'Migration status check failed due to database connection issue',
                        file=migrations,
                        line=1,
                        severity=Severity.HIGH,
                        recommendation=(
                            'Database connection error detected. Ensure your database configuration is correct '
                            'in config/database.php and .env file. Verify the database server is running and '
                            'accessible. If this is a new installation, run "php artisan migrate:install" to '
                            f'create the migrations table. Error: {sanitized}'
                        ),
                        error=sanitized,
                        error_type='database_connection',
                    )
                ],
            )
        return self.failed(
            'Unable to check migration status',
            [
                self.issue(
                    f'Migration status check failed: {sanitized}',
                    file=migrations,
                    line=1,
                    severity=Severity.HIGH,
                    recommendation=(
                        'Ensure the database connection is working and the migrations table exists. If this is '
                        'a new installation, run "php artisan migrate:install" followed by "php artisan migrate". '
                        f'Error: {sanitized}'
                    ),
                    error=sanitized,
                )
            ],
        )

    def run_analysis(self) -> AnalysisResult:
        """Run artisan and turn ``Pending`` rows into one issue."""
        migrations = self.ctx.path('database', 'migrations')
        cmd = ['php', 'artisan', 'migrate:status', '--pending', '--no-ansi']
        try:
            result = self.ctx.runner(cmd, cwd=self.base_path, timeout=self.ctx.settings.timeout)
        except (OSError, TimeoutExpired) as exc:
            return self._failure(str(exc))
        if not result.ok:
            return self._failure(result.failure_text)

        output = result.stdout
        if NO_PENDING_MESSAGE in output:
            return self.passed('All migrations are up to date')

        pending = parse_pending(output)
        if not pending:
            return self.warning(
                'Unable to parse migration status output',
                [
                    self.issue(
                        'Migration status output format is unexpected',
                        file=migrations,
                        line=1,
                        severity=Severity.MEDIUM,
                        recommendation=(
                            'Run "php artisan migrate:status" manually to check migration status. The analyzer '
                            'could not parse the output format.'
                        ),
                        raw_output=output[:500],
                    )
                ],
            )

        shown = ', '.join(pending[:5]) + ('...' if len(pending) > 5 else '')
        return self.failed(
            f'Found {len(pending)} pending migration(s)',
            [
                self.issue(
                    'Pending migrations detected',
                    file=migrations,
                    line=1,
                    severity=Severity.HIGH,
                    recommendation=(
                        'Run "php artisan migrate" to execute pending migrations. In production, ensure '
                        'migrations are run as part of your deployment process. '
                        f'Pending migrations: {shown}'
                    ),
                    pending_count=len(pending),
                    pending_migrations=pending,
                )
            ],
        )


__all__ = ['UpToDateMigrationsAnalyzer', 'is_database_error', 'parse_pending']
