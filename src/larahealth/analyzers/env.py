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

"""``.env`` analyzers.

ELI5::

    ┌─────────────────────────┬───────────────────────────────────────────┐
    │ Analyzer                │ Question it answers                       │
    ├─────────────────────────┼───────────────────────────────────────────┤
    │ env-file-exists         │ Is there a usable .env at all?            │
    │ env-example-documented  │ Is every .env key listed in .env.example? │
    │ env-variables-complete  │ Is every .env.example key set in .env?    │
    └─────────────────────────┴───────────────────────────────────────────┘
"""

from __future__ import annotations

from larahealth.analyzers._base import Analyzer
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Issue, Severity
from larahealth.support.env import parse_commented_env_keys, parse_env_file

_ENV_DOCS = 'https://laravel.com/docs/configuration#environment-configuration'


class EnvFileAnalyzer(Analyzer):
    """The application cannot boot its configuration without ``.env``."""

    metadata = AnalyzerMetadata(
        id='env-file-exists',
        name='Environment File Existence',
        description='Ensures .env file exists for application configuration',
        category=Category.RELIABILITY,
        severity=Severity.CRITICAL,
        tags=('environment', 'configuration', 'deployment'),
        docs_url=_ENV_DOCS,
    )

    def run_analysis(self) -> AnalysisResult:
        """Check that ``.env`` is a regular, readable file."""
        env_path = self.ctx.path('.env')
        example_exists = self.ctx.path('.env.example').is_file()

        if env_path.is_symlink() and not env_path.exists():
            problem, message = 'The .env symlink points to a missing file', 'Application .env file is a broken symlink'
        elif env_path.is_dir():
            problem, message = 'The .env path is a directory, not a file', 'Application .env is not a file'
        elif not env_path.exists():
            problem, message = 'The .env file does not exist', 'Application .env file is missing'
        else:
            return self.passed('.env file exists')

        return self.failed(
            message,
            [
                self.issue(
                    problem,
                    file='.env',
                    severity=Severity.CRITICAL,
                    recommendation=(
                        'Create a .env file in your application root directory. Copy .env.example to .env and '
                        'configure your environment variables. Without a .env file, your application cannot '
                        'load configuration and will fail to run. Run: cp .env.example .env'
                    ),
                    env_path=str(env_path),
                    env_example_exists=example_exists,
                )
            ],
        )


class EnvExampleAnalyzer(Analyzer):
    """Keys used locally should be documented for the rest of the team."""

    metadata = AnalyzerMetadata(
        id='env-example-documented',
        name='Environment Example Documentation Analyzer',
        description='Ensures all environment variables used in .env are documented in .env.example',
        category=Category.RELIABILITY,
        severity=Severity.LOW,
        tags=('environment', 'configuration', 'documentation', 'team-collaboration'),
        docs_url=_ENV_DOCS,
        time_to_fix=10,
    )

    def run_analysis(self) -> AnalysisResult:
        """Diff ``.env`` keys against ``.env.example`` keys."""
        env_path = self.ctx.path('.env')
        example_path = self.ctx.path('.env.example')

        if not env_path.is_file():
            return self.warning('.env file not found - cannot verify documentation')
        if not example_path.is_file():
            return self.failed(
                '.env.example file not found',
                [
                    self.issue(
                        '.env.example file is missing',
                        file='.env.example',
                        severity=Severity.HIGH,
                        recommendation=(
                            'Create a .env.example file to document all environment variables used in your '
                            'application.'
                        ),
                    )
                ],
            )

        try:
            env_keys = parse_env_file(env_path)
            example_keys = parse_env_file(example_path)
        except (OSError, UnicodeDecodeError) as exc:
            return self.error(f'Unable to read environment files: {exc}')

        undocumented = [key for key in env_keys if key not in example_keys]
        if not undocumented:
            return self.passed('All environment variables are documented in .env.example')

        return self.failed(
            f'Found {len(undocumented)} undocumented environment variable(s)',
            [
                self.issue(
                    'Undocumented environment variables',
                    file=example_path,
                    line=1,
                    severity=Severity.LOW,
                    recommendation=(
                        'Add the following environment variables to your .env.example file: '
                        f'{", ".join(undocumented)}\n'
                        'These variables are currently used in .env but not documented in .env.example.\n'
                        'This makes it harder for team members to know what variables are required.'
                    ),
                    code='undocumented-variables',
                    undocumented_count=len(undocumented),
                    undocumented_variables=undocumented,
                )
            ],
        )


class EnvVariableAnalyzer(Analyzer):
    """Every key in ``.env.example`` should be set (not commented out) in ``.env``."""

    metadata = AnalyzerMetadata(
        id='env-variables-complete',
        name='Environment Variables Complete Analyzer',
        description='Ensures all required environment variables from .env.example are defined in .env',
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=('environment', 'configuration', 'reliability', 'deployment'),
        docs_url=_ENV_DOCS,
        time_to_fix=20,
    )

    def _parse_error(self, name: str, exc: Exception, severity: Severity, code: str) -> AnalysisResult:
        return self.result_by_severity(
            f'Failed to parse {name} file',
            [
                self.issue(
                    f'Unable to parse {name} file',
                    file=name,
                    severity=severity,
                    recommendation=(
                        f'The {name} file could not be parsed. Error: {exc}\n\n'
                        'Ensure the file is readable and properly formatted.'
                    ),
                    code=code,
                    error=str(exc),
                )
            ],
        )

    def run_analysis(self) -> AnalysisResult:
        """Split ``.env.example`` keys into set, commented-out and missing."""
        env_path = self.ctx.path('.env')
        example_path = self.ctx.path('.env.example')

        if not example_path.is_file():
            return self.warning('.env.example file not found - cannot verify environment variables')
        if not env_path.is_file():
            return self.result_by_severity(
                '.env file not found',
                [
                    self.issue(
                        '.env file is missing',
                        file='.env',
                        severity=Severity.CRITICAL,
                        recommendation=(
                            'Create a .env file by copying .env.example.\n\n'
                            'Unix/Linux:\n  cp .env.example .env\n\n'
                            'Windows:\n  copy .env.example .env\n\n'
                            'After creating the file, configure the environment variables with appropriate '
                            'values for your environment.'
                        ),
                        code='missing-env',
                    )
                ],
            )

        try:
            example_keys = parse_env_file(example_path)
        except (OSError, UnicodeDecodeError) as exc:
            return self._parse_error('.env.example', exc, Severity.CRITICAL, 'parse-error-example')
        try:
            env_keys = parse_env_file(env_path)
        except (OSError, UnicodeDecodeError) as exc:
            return self._parse_error('.env', exc, Severity.HIGH, 'parse-error-env')
        commented_keys = parse_commented_env_keys(env_path)

        missing: list[str] = []
        commented: list[str] = []
        for key in example_keys:
            if key in env_keys:
                continue
            if key in commented_keys:
                commented.append(key)
            else:
                missing.append(key)

        if not missing and not commented:
            return self.passed('All environment variables from .env.example are defined and enabled in .env')

        issues: list[Issue] = []
        if missing:
            issues.append(
                self.issue(
                    'Missing environment variables',
                    file='.env',
                    severity=Severity.HIGH,
                    recommendation=(
                        f'Add the following environment variables to your .env file: {", ".join(missing)}\n\n'
                        'These variables are defined in .env.example and may be required for the '
                        'application to function correctly.'
                    ),
                    code='missing-variables',
                    missing_count=len(missing),
                    missing_variables=missing,
                )
            )
        if commented:
            issues.append(
                self.issue(
                    'Environment variables are commented out',
                    file='.env',
                    severity=Severity.LOW,
                    recommendation=(
                        f'The following environment variables are commented out in .env: {", ".join(commented)}\n\n'
                        "These variables are defined in .env.example. If they're intentionally disabled, this "
                        'is fine. If they should be active, uncomment them in your .env file.'
                    ),
                    code='commented-variables',
                    commented_count=len(commented),
                    commented_variables=commented,
                )
            )

        if not missing:
            return self.warning(f'Found {len(commented)} commented environment variable(s)', issues)
        return self.result_by_severity(f'Found {len(missing) + len(commented)} environment variable issue(s)', issues)


__all__ = ['EnvExampleAnalyzer', 'EnvFileAnalyzer', 'EnvVariableAnalyzer']
