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

"""Database connectivity analyzer.

Severity matrix::

    ┌──────────────────┬───────────┬────────────┐
    │                  │ transient │ persistent │
    ├──────────────────┼───────────┼────────────┤
    │ default conn     │ High      │ Critical   │
    │ other conn       │ Medium    │ High       │
    └──────────────────┴───────────┴────────────┘

"Transient" means the message looks like a network hiccup (refused,
timed out, DNS). Credentials, missing databases and missing drivers are
persistent.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Protocol

from larahealth.analyzers._base import Analyzer
from larahealth.laravel import ProjectContext, find_key_line, run_tinker
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Issue, Location, Severity
from larahealth.support.sanitize import sanitize_error_message

TRANSIENT_PATTERNS: tuple[str, ...] = (
    'connection refused',
    'connection timed out',
    'timeout',
    'timed out',
    'network is unreachable',
    'no route to host',
    'temporary failure in name resolution',
    'name or service not known',
)

PHP_EXTENSIONS: dict[str, str] = {
    'mysql': 'pdo_mysql',
    'pgsql': 'pdo_pgsql',
    'sqlsrv': 'pdo_sqlsrv',
    'sqlite': 'pdo_sqlite',
}


@dataclass(frozen=True)
class ConnectionCheck:
    """Outcome of one connection attempt."""

    successful: bool
    message: str | None = None
    exception_class: str | None = None


class DatabaseConnectionChecker(Protocol):
    """Something that can try to open a named Laravel connection."""

    def check(self, connection: str) -> ConnectionCheck:
        """Attempt to connect and report the outcome."""
        ...


_CHECK_CODE = """
try {{
    DB::connection({name})->getPdo();
    echo json_encode(['successful' => true]);
}} catch (\\Throwable $e) {{
    echo json_encode(['successful' => false, 'message' => $e->getMessage(), 'class' => get_class($e)]);
}}
"""


class ArtisanConnectionChecker:
    """Open connections through ``php artisan tinker``."""

    def __init__(self, ctx: ProjectContext, *, timeout: int = 60) -> None:
        """Bind the checker to the project in ``ctx``."""
        self._ctx = ctx
        self._timeout = timeout

    def check(self, connection: str) -> ConnectionCheck:
        """Run ``DB::connection(name)->getPdo()`` and decode the outcome."""
        code = _CHECK_CODE.format(name=json.dumps(connection).replace('$', '\\$'))
        result = run_tinker(self._ctx.base_path, code, runner=self._ctx.runner, timeout=self._timeout)
        if not result.ok:
            return ConnectionCheck(False, result.stderr.strip() or f'artisan exited with {result.return_code}')
        try:
            data = json.loads(result.stdout.strip())
        except json.JSONDecodeError:
            return ConnectionCheck(False, f'Unexpected tinker output: {result.stdout.strip()[:100]}')
        if not isinstance(data, dict):
            return ConnectionCheck(False, 'Unexpected tinker output')
        if data.get('successful') is True:
            return ConnectionCheck(True)
        return ConnectionCheck(False, data.get('message'), data.get('class'))


def is_transient(check: ConnectionCheck) -> bool:
    """Whether the failure looks like a temporary network problem."""
    message = (check.message or '').lower()
    return any(p in message for p in TRANSIENT_PATTERNS)


def failure_severity(*, is_default: bool, check: ConnectionCheck) -> Severity:
    """Severity of a failed connection (see the module table)."""
    transient = is_transient(check)
    if is_default:
        return Severity.HIGH if transient else Severity.CRITICAL
    return Severity.MEDIUM if transient else Severity.HIGH


class DatabaseStatusAnalyzer(Analyzer):
    """Every configured connection must accept a connection."""

    metadata = AnalyzerMetadata(
        id='database-status',
        name='Database Status Analyzer',
        description='Ensures database connections are accessible and functioning properly',
        category=Category.RELIABILITY,
        severity=Severity.CRITICAL,
        tags=('database', 'infrastructure', 'reliability', 'availability'),
        docs_url='https://laravel.com/docs/database#configuration',
        time_to_fix=15,
    )
    run_in_ci = False

    def __init__(self, ctx: ProjectContext, checker: DatabaseConnectionChecker | None = None) -> None:
        """Use ``checker``, or open connections through artisan."""
        super().__init__(ctx)
        self.checker: DatabaseConnectionChecker = checker if checker is not None else ArtisanConnectionChecker(ctx)

    def connections_to_check(self, default: str) -> list[str]:
        """The default connection first, then ``database_connections``, deduplicated."""
        names = [default]
        for name in self.ctx.settings.database_connections:
            name = name.strip()
            if name and name not in names:
                names.append(name)
        return names

    def _driver(self, connection: str) -> str | None:
        driver = self.ctx.config.get(f'database.connections.{connection}.driver')
        return driver if isinstance(driver, str) else None

    def _location(self, connection: str) -> Location:
        config_file = self.ctx.config_path('database')
        try:
            line = find_key_line(config_file.read_text(encoding='utf-8'), connection, parent='connections')
        except OSError:
            line = None
        return Location(self.relative(config_file), line)

    def recommendation(self, connection: str, check: ConnectionCheck) -> str:
        """Advice tailored to the failure message and driver."""
        error_message = check.message or ''
        error = error_message.lower()
        text = f"Database connection '{connection}' failed: {sanitize_error_message(error_message)}. "
        if 'access denied' in error:
            text += 'Check database username and password in your .env file. '
        elif 'connection refused' in error or 'could not find driver' in error:
            extension = PHP_EXTENSIONS.get(self._driver(connection) or '', 'PDO')
            text += f'Ensure the database server is running and the {extension} PHP extension is installed. '
        elif 'unknown database' in error:
            text += 'The specified database does not exist. Create it or check the DB_DATABASE value in .env. '
        else:
            text += (
                'Common issues: 1) Database server not running, 2) Incorrect credentials, '
                '3) Firewall blocking connection, 4) Wrong host/port. '
            )
        return text + f"Verify settings in .env and config/database.php for the '{connection}' connection."

    def run_analysis(self) -> AnalysisResult:
        """Check each connection and collect the failures."""
        default = self.ctx.config.get('database.default')
        if not isinstance(default, str):
            return self.warning('Unable to determine default database connection')

        issues: list[Issue] = []
        for connection in self.connections_to_check(default):
            check = self.checker.check(connection)
            if check.successful:
                continue
            location = self._location(connection)
            message = sanitize_error_message(check.message) if check.message else ''
            issues.append(
                self.issue(
                    message or f"Cannot connect to database '{connection}'",
                    file=location.file,
                    line=location.line,
                    severity=failure_severity(is_default=connection == default, check=check),
                    recommendation=self.recommendation(connection, check),
                    connection=connection,
                    driver=self._driver(connection),
                    exception=check.exception_class,
                    is_default=connection == default,
                )
            )

        if not issues:
            return self.passed('All database connections are accessible')
        return self.failed(f'Failed to connect to {len(issues)} database connection(s)', issues)


__all__ = [
    'ArtisanConnectionChecker',
    'ConnectionCheck',
    'DatabaseConnectionChecker',
    'DatabaseStatusAnalyzer',
    'failure_severity',
    'is_transient',
]
