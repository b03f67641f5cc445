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

"""Tests for larahealth.phpstan.runner."""

from __future__ import annotations

import json
import re
from pathlib import Path

import pytest

from larahealth._run import TimeoutExpired
from larahealth.errors import E, LaraHealthError
from larahealth.phpstan.runner import PHPStanIssue, PHPStanRunner, build_options, wildcard_match
from tests._fakes import FakeRunner, fail, ok, phpstan_json, write


class TestWildcardMatch:
    """Tests for wildcard_match()."""

    def test_exact(self) -> None:
        """Identical strings match."""
        assert wildcard_match('Unreachable statement', 'Unreachable statement')

    def test_star_matches_anything(self) -> None:
        """* matches any run of characters, including none."""
        assert wildcard_match('Class * not found*', 'Class App\\Foo not found.')
        assert wildcard_match('a*b', 'ab')

    def test_anchored(self) -> None:
        """The whole text must match."""
        assert not wildcard_match('Class * not found', 'Class Foo not found.')
        assert not wildcard_match('not found*', 'Class Foo not found')

    def test_regex_characters_are_literal(self) -> None:
        """Regex metacharacters other than * are literal."""
        assert wildcard_match('Result of * (void) is used*', 'Result of method Foo::bar() (void) is used.')
        assert not wildcard_match('a.c', 'abc')

    def test_multiline(self) -> None:
        """* spans newlines."""
        assert wildcard_match('first*last', 'first\nmiddle\nlast')


class TestBuildOptions:
    """Tests for build_options()."""

    def test_flags(self) -> None:
        """True is bare, False/None are dropped, other values are inlined."""
        assert build_options({'level': 5, 'no-progress': True, 'memory-limit': None, 'debug': False}) == [
            '--level=5',
            '--no-progress',
        ]


class TestPHPStanRunner:
    """Tests for PHPStanRunner with a fake command runner."""

    def test_is_available(self, tmp_path: Path) -> None:
        """The binary must exist under vendor/bin."""
        runner = PHPStanRunner(tmp_path, runner=FakeRunner())
        assert not runner.is_available()
        write(tmp_path, 'vendor/bin/phpstan')
        assert runner.is_available()

    def test_command_line(self, tmp_path: Path) -> None:
        """analyze() runs phpstan with JSON output in the project root."""
        fake = FakeRunner({'phpstan': ok(phpstan_json({}))})
        PHPStanRunner(tmp_path, runner=fake).analyze('app', level=5)
        assert fake.calls == [
            [
                'vendor/bin/phpstan',
                'analyse',
                '--level=5',
                '--error-format=json',
                '--no-progress',
                '--no-interaction',
                'app',
            ]
        ]
        assert fake.cwds == [tmp_path]

    def test_config_path_and_many_paths(self, tmp_path: Path) -> None:
        """A config file and several paths are appended."""
        fake = FakeRunner({'phpstan': ok(phpstan_json({}))})
        PHPStanRunner(tmp_path, runner=fake).analyze(['app', 'routes'], level=3, config_path='phpstan.neon')
        assert fake.calls[0][-4:] == ['-c', 'phpstan.neon', 'app', 'routes']

    def test_issues_are_flattened(self, tmp_path: Path) -> None:
        """Every message becomes a PHPStanIssue."""
        output = phpstan_json({
            '/p/app/User.php': [(10, 'Unreachable statement - code above always terminates.')],
            '/p/app/Post.php': [(3, 'Undefined variable: $x')],
        })
        fake = FakeRunner({'phpstan': fail(stdout=output)})
        issues = PHPStanRunner(tmp_path, runner=fake).analyze('app').issues()
        assert issues == [
            PHPStanIssue('/p/app/User.php', 10, 'Unreachable statement - code above always terminates.'),
            PHPStanIssue('/p/app/Post.php', 3, 'Undefined variable: $x'),
        ]

    def test_false_positive_dropped(self, tmp_path: Path) -> None:
        """The CarbonPeriod foreach message is ignored."""
        output = phpstan_json({
            '/p/app/Report.php': [(7, 'Argument of an invalid type Carbon\\CarbonPeriod supplied for foreach, only iterables are supported.')],
        })
        fake = FakeRunner({'phpstan': ok(output)})
        assert PHPStanRunner(tmp_path, runner=fake).analyze('app').issues() == []

    def test_malformed_entries_skipped(self, tmp_path: Path) -> None:
        """Entries without a string message are skipped; odd lines become 0."""
        output = json.dumps({
            'files': {
                'a.php': {'messages': [{'line': 1}, {'message': 'x', 'line': 'abc'}, 'junk']},
                'b.php': 'junk',
            }
        })
        fake = FakeRunner({'phpstan': ok(output)})
        assert PHPStanRunner(tmp_path, runner=fake).analyze('app').issues() == [PHPStanIssue('a.php', 0, 'x')]

    def test_unparsable_output(self, tmp_path: Path) -> None:
        """Non-JSON output yields no issues."""
        fake = FakeRunner({'phpstan': ok('PHP Warning: something')})
        runner = PHPStanRunner(tmp_path, runner=fake).analyze('app')
        assert runner.issues() == []
        assert runner.raw() == {'files': {}}

    def test_failure_without_output(self, tmp_path: Path) -> None:
        """A failed run with empty stdout raises."""
        fake = FakeRunner({'phpstan': fail('Fatal error: memory exhausted')})
        with pytest.raises(LaraHealthError) as excinfo:
            PHPStanRunner(tmp_path, runner=fake).analyze('app')
        assert excinfo.value.code is E.PHPSTAN_FAILED

    def test_timeout(self, tmp_path: Path) -> None:
        """A timeout is reported with its own code."""
        fake = FakeRunner({'phpstan': TimeoutExpired(['phpstan'], 5)})
        with pytest.raises(LaraHealthError) as excinfo:
            PHPStanRunner(tmp_path, runner=fake, timeout=5).analyze('app')
        assert excinfo.value.code is E.PHPSTAN_TIMEOUT

    def test_missing_binary(self, tmp_path: Path) -> None:
        """A missing executable has its own code and an install hint."""
        fake = FakeRunner({'phpstan': FileNotFoundError('vendor/bin/phpstan')})
        with pytest.raises(LaraHealthError) as excinfo:
            PHPStanRunner(tmp_path, runner=fake).analyze('app')
        assert excinfo.value.code is E.PHPSTAN_NOT_FOUND
        assert 'composer require' in excinfo.value.hint

    def test_unstartable_binary(self, tmp_path: Path) -> None:
        """Any other OS error starting the process is a failure."""
        fake = FakeRunner({'phpstan': PermissionError('vendor/bin/phpstan')})
        with pytest.raises(LaraHealthError) as excinfo:
            PHPStanRunner(tmp_path, runner=fake).analyze('app')
        assert excinfo.value.code is E.PHPSTAN_FAILED


class TestFilters:
    """Tests for the three issue filters."""

    @pytest.fixture
    def runner(self, tmp_path: Path) -> PHPStanRunner:
        """A runner loaded with three messages."""
        output = phpstan_json({
            'a.php': [
                (1, 'Call to an undefined method App\\User::foo().'),
                (2, 'Class App\\Missing not found.'),
                (3, 'Call to deprecated method bar().'),
            ]
        })
        return PHPStanRunner(tmp_path, runner=FakeRunner({'phpstan': ok(output)})).analyze('app')

    def test_filter_by_pattern(self, runner: PHPStanRunner) -> None:
        """Wildcard patterns select whole messages."""
        assert [i.line for i in runner.filter_by_pattern(['Class * not found*', 'Call to an undefined method *'])] == [1, 2]

    def test_filter_by_regex(self, runner: PHPStanRunner) -> None:
        """Regexes are searched anywhere."""
        assert [i.line for i in runner.filter_by_regex(re.compile('deprecated', re.IGNORECASE))] == [3]
        assert [i.line for i in runner.filter_by_regex('App\\\\')] == [1, 2]

    def test_filter_by_text(self, runner: PHPStanRunner) -> None:
        """Plain substrings are matched."""
        assert [i.line for i in runner.filter_by_text('undefined')] == [1]

    def test_aliases(self, runner: PHPStanRunner) -> None:
        """The short names call the same filters."""
        assert runner.parse_analysis('undefined') == runner.filter_by_text('undefined')
        assert runner.match('Class *') == runner.filter_by_pattern('Class *')
        assert runner.preg_match('bar') == runner.filter_by_regex('bar')
