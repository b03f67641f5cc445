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

"""Tests for the .env analyzers."""

from __future__ import annotations

from pathlib import Path

from larahealth.analyzers.env import EnvExampleAnalyzer, EnvFileAnalyzer, EnvVariableAnalyzer
from larahealth.models import Severity, Status
from tests._fakes import make_context, write


class TestEnvFileAnalyzer:
    """Tests for env-file-exists."""

    def test_present(self, tmp_path: Path) -> None:
        """A regular .env passes."""
        write(tmp_path, '.env', 'APP_NAME=Shop\n')
        result = EnvFileAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.PASSED
        assert result.message == '.env file exists'

    def test_missing(self, tmp_path: Path) -> None:
        """A missing .env is critical."""
        write(tmp_path, '.env.example')
        result = EnvFileAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Application .env file is missing'
        issue = result.issues[0]
        assert issue.severity is Severity.CRITICAL
        assert issue.metadata['env_example_exists'] is True
        assert 'cp .env.example .env' in issue.recommendation

    def test_directory(self, tmp_path: Path) -> None:
        """A directory named .env is not a file."""
        (tmp_path / '.env').mkdir()
        result = EnvFileAnalyzer(make_context(tmp_path)).analyze()
        assert result.message == 'Application .env is not a file'

    def test_broken_symlink(self, tmp_path: Path) -> None:
        """A dangling symlink is reported as such."""
        (tmp_path / '.env').symlink_to(tmp_path / 'gone.env')
        result = EnvFileAnalyzer(make_context(tmp_path)).analyze()
        assert result.message == 'Application .env file is a broken symlink'


class TestEnvExampleAnalyzer:
    """Tests for env-example-documented."""

    def test_all_documented(self, tmp_path: Path) -> None:
        """Every .env key in .env.example passes."""
        write(tmp_path, '.env', 'APP_NAME=Shop\nDB_HOST=db\n')
        write(tmp_path, '.env.example', 'APP_NAME=\nDB_HOST=\nEXTRA=\n')
        result = EnvExampleAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.PASSED
        assert result.message == 'All environment variables are documented in .env.example'

    def test_undocumented(self, tmp_path: Path) -> None:
        """Keys missing from .env.example are listed."""
        write(tmp_path, '.env', 'APP_NAME=Shop\nSTRIPE_KEY=sk\nSENTRY_DSN=x\n')
        write(tmp_path, '.env.example', 'APP_NAME=\n')
        result = EnvExampleAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Found 2 undocumented environment variable(s)'
        issue = result.issues[0]
        assert issue.metadata['undocumented_variables'] == ['STRIPE_KEY', 'SENTRY_DSN']
        assert str(issue.location) == '.env.example:1'

    def test_no_env(self, tmp_path: Path) -> None:
        """Without .env there is nothing to verify."""
        assert EnvExampleAnalyzer(make_context(tmp_path)).analyze().status is Status.WARNING

    def test_no_example(self, tmp_path: Path) -> None:
        """A missing .env.example fails."""
        write(tmp_path, '.env', 'APP_NAME=Shop\n')
        result = EnvExampleAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.message == '.env.example file not found'


class TestEnvVariableAnalyzer:
    """Tests for env-variables-complete."""

    def test_complete(self, tmp_path: Path) -> None:
        """All example keys set in .env passes."""
        write(tmp_path, '.env', 'APP_NAME=Shop\nDB_HOST=db\n')
        write(tmp_path, '.env.example', 'APP_NAME=\nDB_HOST=\n')
        result = EnvVariableAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.PASSED
        assert result.message == 'All environment variables from .env.example are defined and enabled in .env'

    def test_missing_and_commented(self, tmp_path: Path) -> None:
        """Missing keys fail; commented ones are listed separately."""
        write(tmp_path, '.env', 'APP_NAME=Shop\n# MAIL_HOST=smtp\n')
        write(tmp_path, '.env.example', 'APP_NAME=\nDB_HOST=\nMAIL_HOST=\n')
        result = EnvVariableAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Found 2 environment variable issue(s)'
        assert [i.code for i in result.issues] == ['missing-variables', 'commented-variables']
        assert result.issues[0].metadata['missing_variables'] == ['DB_HOST']
        assert result.issues[1].metadata['commented_variables'] == ['MAIL_HOST']

    def test_only_commented_warns(self, tmp_path: Path) -> None:
        """Only commented-out keys produce a warning."""
        write(tmp_path, '.env', 'APP_NAME=Shop\n#MAIL_HOST=smtp\n')
        write(tmp_path, '.env.example', 'APP_NAME=\nMAIL_HOST=\n')
        result = EnvVariableAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.WARNING
        assert result.message == 'Found 1 commented environment variable(s)'

    def test_missing_env(self, tmp_path: Path) -> None:
        """No .env at all is critical."""
        write(tmp_path, '.env.example', 'APP_NAME=\n')
        result = EnvVariableAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.issues[0].code == 'missing-env'

    def test_missing_example(self, tmp_path: Path) -> None:
        """No .env.example means nothing to compare against."""
        write(tmp_path, '.env', 'APP_NAME=Shop\n')
        assert EnvVariableAnalyzer(make_context(tmp_path)).analyze().status is Status.WARNING

    def test_unparsable_env(self, tmp_path: Path) -> None:
        """A non-UTF-8 .env is reported as a parse error."""
        write(tmp_path, '.env.example', 'APP_NAME=\n')
        (tmp_path / '.env').write_bytes(b'APP_NAME=\xff\xfe\n')
        result = EnvVariableAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.issues[0].code == 'parse-error-env'
