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

"""Tests for larahealth.baseline."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from larahealth.baseline import (
    BASELINE_VERSION,
    Baseline,
    apply_baseline,
    apply_ignore_errors,
    generate_baseline,
    issue_hash,
    load_baseline,
    write_baseline,
)
from larahealth.errors import E, LaraHealthError
from larahealth.models import AnalysisResult, Issue, Location, Severity, Status


def _issue(message: str = 'Dead Code detected', file: str | None = 'app/Foo.php', line: int | None = 12) -> Issue:
    location = Location(file, line) if file is not None else None
    return Issue(message=message, location=location, severity=Severity.HIGH, recommendation='fix it')


class TestIssueHash:
    """Tests for issue_hash()."""

    def test_known_value(self) -> None:
        """The hash covers compact JSON with escaped slashes."""
        assert issue_hash(_issue()) == 'ae76764e63e8a2d45ad79fc60cfbf4bd2cb3530ebbcdb0eedaa3ae190f09705e'

    def test_without_location(self) -> None:
        """Issues without a location hash as file 'unknown'."""
        assert issue_hash(_issue('x', file=None)) == '7dfa032863be8e06164d73b80665343af389182a5a0a793a2df718678bbd50b3'

    def test_recommendation_not_hashed(self) -> None:
        """Only file, line and message matter."""
        other = Issue('Dead Code detected', Location('app/Foo.php', 12), Severity.LOW, 'other advice')
        assert issue_hash(other) == issue_hash(_issue())
        assert issue_hash(_issue(line=13)) != issue_hash(_issue())


class TestGenerateBaseline:
    """Tests for generate_baseline()."""

    def test_records_issues(self) -> None:
        """Failing results are recorded per analyzer; passing ones are not."""
        results = [
            AnalysisResult.failed('phpstan', 'Found 2', [_issue(), _issue(line=20)]),
            AnalysisResult.passed('env-file-exists', 'ok'),
            AnalysisResult.skipped('cache-status', 'CI'),
        ]
        baseline = generate_baseline(results)
        assert list(baseline.errors) == ['phpstan']
        assert baseline.total_issues == 2
        entry = baseline.errors['phpstan'][0]
        assert entry == {
            'type': 'hash',
            'path': 'app/Foo.php',
            'line': 12,
            'message': 'Dead Code detected',
            'hash': issue_hash(_issue()),
        }
        assert baseline.generated_at.endswith('+00:00')

    def test_issueless_failure_goes_to_dont_report(self) -> None:
        """A failure without issues cannot be fingerprinted."""
        baseline = generate_baseline([AnalysisResult.error('database-status', 'boom')])
        assert baseline.dont_report == ['database-status']
        assert baseline.errors == {}

    def test_merge_dedupes(self) -> None:
        """Merging keeps existing entries and skips known hashes."""
        first = generate_baseline([AnalysisResult.failed('phpstan', 'x', [_issue()])])
        merged = generate_baseline(
            [AnalysisResult.failed('phpstan', 'x', [_issue(), _issue(line=30)])],
            existing=first,
        )
        assert merged.total_issues == 2
        assert first.total_issues == 1


class TestSerialization:
    """Tests for load/write round trips and tolerant parsing."""

    def test_write_then_load(self, tmp_path: Path) -> None:
        """A written baseline loads back identically."""
        path = tmp_path / 'nested' / 'baseline.json'
        baseline = generate_baseline(
            [AnalysisResult.failed('phpstan', 'x', [_issue()]), AnalysisResult.failed('queue', 'y')]
        )
        write_baseline(baseline, path)
        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['version'] == BASELINE_VERSION
        assert data['generator'] == 'larahealth baseline'
        assert data['total_issues'] == 1
        assert data['dont_report'] == ['queue']
        assert '"path": "app/Foo.php"' in path.read_text(encoding='utf-8')
        loaded = load_baseline(path)
        assert loaded.errors == baseline.errors
        assert loaded.dont_report == ['queue']
        assert list(path.parent.glob('.larahealth-baseline-*')) == []

    def test_to_dict_dedupes_dont_report(self) -> None:
        """dont_report is written without duplicates, in order."""
        assert Baseline(dont_report=['a', 'b', 'a']).to_dict()['dont_report'] == ['a', 'b']

    def test_from_dict_is_tolerant(self) -> None:
        """Malformed sections are dropped instead of raising."""
        baseline = Baseline.from_dict({'errors': {'a': 'x', 'b': [1, {'hash': 'h'}]}, 'dont_report': 'no'})
        assert baseline.errors == {'b': [{'hash': 'h'}]}
        assert baseline.dont_report == []
        assert baseline.hashes('b') == {'h'}

    def test_load_missing(self, tmp_path: Path) -> None:
        """A missing file is invalid."""
        with pytest.raises(LaraHealthError) as excinfo:
            load_baseline(tmp_path / 'none.json')
        assert excinfo.value.code is E.BASELINE_INVALID

    def test_load_bad_json(self, tmp_path: Path) -> None:
        """Unparsable JSON is invalid."""
        path = tmp_path / 'b.json'
        path.write_text('{', encoding='utf-8')
        with pytest.raises(LaraHealthError) as excinfo:
            load_baseline(path)
        assert excinfo.value.code is E.BASELINE_INVALID

    def test_load_not_object(self, tmp_path: Path) -> None:
        """A JSON array is invalid."""
        path = tmp_path / 'b.json'
        path.write_text('[]', encoding='utf-8')
        with pytest.raises(LaraHealthError):
            load_baseline(path)

    def test_write_failure(self, tmp_path: Path) -> None:
        """An unwritable location is reported."""
        blocker = tmp_path / 'file'
        blocker.write_text('', encoding='utf-8')
        with pytest.raises(LaraHealthError) as excinfo:
            write_baseline(Baseline(), blocker / 'baseline.json')
        assert excinfo.value.code is E.BASELINE_WRITE_FAILED


class TestApplyBaseline:
    """Tests for apply_baseline()."""

    def test_all_baselined(self) -> None:
        """A result whose issues are all recorded passes."""
        baseline = generate_baseline([AnalysisResult.failed('phpstan', 'x', [_issue()])])
        [result] = apply_baseline([AnalysisResult.failed('phpstan', 'Found 1', [_issue()])], baseline)
        assert result.status is Status.PASSED
        assert result.message == 'All issues are in baseline'
        assert result.metadata['baselined_issues'] == 1

    def test_new_issue_kept(self) -> None:
        """New issues survive and keep the result failing."""
        baseline = generate_baseline([AnalysisResult.failed('phpstan', 'x', [_issue()])])
        [result] = apply_baseline([AnalysisResult.failed('phpstan', 'Found 2', [_issue(), _issue(line=99)])], baseline)
        assert result.status is Status.FAILED
        assert result.message == 'Found 2'
        assert [i.location.line for i in result.issues if i.location] == [99]

    def test_hashes_are_per_analyzer(self) -> None:
        """A hash recorded for one analyzer does not hide another's issue."""
        baseline = generate_baseline([AnalysisResult.failed('phpstan', 'x', [_issue()])])
        [result] = apply_baseline([AnalysisResult.failed('dead-code', 'x', [_issue()])], baseline)
        assert result.status is Status.FAILED


class TestApplyIgnoreErrors:
    """Tests for apply_ignore_errors()."""

    def test_wildcard(self) -> None:
        """Patterns with * drop matching messages."""
        results = [AnalysisResult.failed('phpstan', 'x', [_issue('Dead Code detected'), _issue('Invalid Imports detected')])]
        [result] = apply_ignore_errors(results, {'phpstan': ['Dead *']})
        assert [i.message for i in result.issues] == ['Invalid Imports detected']
        assert result.metadata['ignored_issues'] == 1
        assert result.status is Status.FAILED

    def test_exact_message_must_match_fully(self) -> None:
        """Patterns without * are exact."""
        results = [AnalysisResult.warning('phpstan', 'x', [_issue('Dead Code detected')])]
        [unchanged] = apply_ignore_errors(results, {'phpstan': ['Dead Code']})
        assert unchanged.status is Status.WARNING
        [ignored] = apply_ignore_errors(results, {'phpstan': ['Dead Code detected']})
        assert ignored.status is Status.PASSED
        assert ignored.message == 'All issues are ignored by configuration'

    def test_other_analyzers_untouched(self) -> None:
        """Patterns only apply to their analyzer id."""
        results = [AnalysisResult.failed('dead-code', 'x', [_issue()])]
        assert apply_ignore_errors(results, {'phpstan': ['*']}) == results
