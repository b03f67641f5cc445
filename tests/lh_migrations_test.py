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

"""Tests for the pending migrations analyzer."""

from __future__ import annotations

from pathlib import Path

from larahealth._run import TimeoutExpired
from larahealth.analyzers.migrations import UpToDateMigrationsAnalyzer, is_database_error, parse_pending
from larahealth.config import Settings
from larahealth.models import Severity, Status
from tests._fakes import FakeRunner, fail, make_context, ok

_PENDING_OUTPUT = """
  Migration name ............................................ Batch / Status
  Pending 2024_05_01_000000_create_orders_table
  Pending 2024_05_02_000000_add_total_to_orders_table
"""


class TestParsing:
    """Tests for the output helpers."""

    def test_parse_pending(self) -> None:
        """Names follow the Pending marker."""
        assert parse_pending(_PENDING_OUTPUT) == [
            '2024_05_01_000000_create_orders_table',
            '2024_05_02_000000_add_total_to_orders_table',
        ]

    def test_is_database_error(self) -> None:
        """Connection problems are recognised case-insensitively."""
        assert is_database_error('SQLSTATE[HY000] [2002] Connection refused')
        assert is_database_error('could not find driver')
        assert not is_database_error('Class "Foo" not found')


class TestUpToDateMigrationsAnalyzer:
    """Tests for up-to-date-migrations."""

    def test_up_to_date(self, tmp_path: Path) -> None:
        """The 'no pending' message passes."""
        runner = FakeRunner({'migrate:status': ok('\n   INFO  No pending migrations.\n')})
        result = UpToDateMigrationsAnalyzer(make_context(tmp_path, runner=runner)).analyze()
        assert result.status is Status.PASSED
        assert result.message == 'All migrations are up to date'
        assert runner.calls == [['php', 'artisan', 'migrate:status', '--pending', '--no-ansi']]

    def test_pending(self, tmp_path: Path) -> None:
        """Pending rows become one issue listing them."""
        runner = FakeRunner({'migrate:status': ok(_PENDING_OUTPUT)})
        result = UpToDateMigrationsAnalyzer(make_context(tmp_path, runner=runner)).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Found 2 pending migration(s)'
        issue = result.issues[0]
        assert issue.severity is Severity.HIGH
        assert issue.metadata['pending_count'] == 2
        assert str(issue.location) == 'database/migrations:1'

    def test_many_pending_are_truncated(self, tmp_path: Path) -> None:
        """At most five names appear in the recommendation."""
        output = '\n'.join(f'  Pending 2024_01_0{n}_000000_m{n}' for n in range(1, 8))
        runner = FakeRunner({'migrate:status': ok(output)})
        issue = UpToDateMigrationsAnalyzer(make_context(tmp_path, runner=runner)).analyze().issues[0]
        assert issue.recommendation.endswith('2024_01_05_000000_m5...')
        assert issue.metadata['pending_count'] == 7

    def test_unparsable(self, tmp_path: Path) -> None:
        """Unknown output warns."""
        runner = FakeRunner({'migrate:status': ok('something else')})
        result = UpToDateMigrationsAnalyzer(make_context(tmp_path, runner=runner)).analyze()
        assert result.status is Status.WARNING
        assert result.message == 'Unable to parse migration status output'

    def test_database_error(self, tmp_path: Path) -> None:
        """Connection failures are reported as such, with secrets redacted."""
        runner = FakeRunner({'migrate:status': fail('SQLSTATE[HY000] [1045] Access denied (password=hunter2)')})
        result = UpToDateMigrationsAnalyzer(make_context(tmp_path, runner=runner)).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Database connection error while checking migration status'
        assert result.issues[0].metadata['error_type'] == 'database_connection'
        assert 'hunter2' not in result.issues[0].recommendation

    def test_other_error(self, tmp_path: Path) -> None:
        """Other failures use the generic message."""
        runner = FakeRunner({'migrate:status': fail('Class "Foo" not found')})
        result = UpToDateMigrationsAnalyzer(make_context(tmp_path, runner=runner)).analyze()
        assert result.message == 'Unable to check migration status'

    def test_timeout(self, tmp_path: Path) -> None:
        """A timed-out artisan call fails instead of crashing."""
        runner = FakeRunner({'migrate:status': TimeoutExpired(['php'], 300)})
        result = UpToDateMigrationsAnalyzer(make_context(tmp_path, runner=runner)).analyze()
        assert result.status is Status.FAILED

    def test_skipped_in_ci(self, tmp_path: Path) -> None:
        """The check needs a live database."""
        ctx = make_context(tmp_path, settings=Settings(ci=True))
        assert UpToDateMigrationsAnalyzer(ctx).analyze().status is Status.SKIPPED
