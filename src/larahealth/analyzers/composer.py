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

"""``composer.json`` validation."""

from __future__ import annotations

import json

from larahealth._run import TimeoutExpired
from larahealth.analyzers._base import Analyzer
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Severity
from larahealth.support.composer import composer_command


class ComposerValidationAnalyzer(Analyzer):
    """Syntax first, then ``composer validate --no-check-publish``."""

    metadata = AnalyzerMetadata(
        id='composer-validation',
        name='Composer Validation',
        description='Ensures composer.json file is valid and follows best practices',
        category=Category.RELIABILITY,
        severity=Severity.CRITICAL,
        tags=('composer', 'dependencies', 'reliability', 'configuration'),
        docs_url='https://getcomposer.org/doc/03-cli.md#validate',
        time_to_fix=10,
    )

    def _invalid(self, summary: str, message: str, recommendation: str, **metadata: object) -> AnalysisResult:
        return self.failed(
            summary,
            [
                self.issue(
                    message,
                    file='composer.json',
                    line=1,
                    severity=Severity.CRITICAL,
                    recommendation=recommendation,
                    **metadata,
                )
            ],
        )

    def _check_syntax(self) -> AnalysisResult | None:
        try:
            content = self.ctx.path('composer.json').read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError):
            return self.failed('Unable to read composer.json file')
        try:
            decoded = json.loads(content)
        except json.JSONDecodeError as exc:
            return self._invalid(
                'composer.json contains invalid JSON',
                f'composer.json is not valid JSON: {exc.msg}',
                'Fix the JSON syntax errors in composer.json. Use a JSON validator or run "composer validate" to '
                'see specific errors. Common issues: missing commas, trailing commas, unescaped quotes.',
                json_error=exc.msg,
                json_error_line=exc.lineno,
            )
        if not isinstance(decoded, dict):
            return self._invalid(
                'composer.json is not a valid JSON object',
                'composer.json must be a JSON object, not a primitive value or array',
                'composer.json must be a valid JSON object. Ensure the root element is an object (wrapped in '
                'curly braces {}).',
            )
        return None

    def run_analysis(self) -> AnalysisResult:
        """Validate the manifest."""
        if not self.ctx.path('composer.json').is_file():
            return self._invalid(
                'composer.json file not found',
                'composer.json file is missing',
                'Create a composer.json file in the root of your project. Run "composer init" to create one '
                'interactively.',
            )

        syntax_failure = self._check_syntax()
        if syntax_failure is not None:
            return syntax_failure

        cmd = [*composer_command(self.base_path), 'validate', '--no-check-publish']
        try:
            result = self.ctx.runner(cmd, cwd=self.base_path, timeout=self.ctx.settings.timeout)
        except (OSError, TimeoutExpired) as exc:
            return self.error(f'Unable to run composer validate: {exc}')

        if not result.ok:
            return self.failed(
                'composer.json validation failed',
                [
                    self.issue(
                        'composer validate command reported issues',
                        file='composer.json',
                        line=1,
                        severity=Severity.HIGH,
                        recommendation=(
                            'Run "composer validate" to see full details and resolve the reported issues. Ensure '
                            'version constraints and schema match Composer expectations.'
                        ),
                        composer_output=(result.stdout + result.stderr).strip(),
                    )
                ],
            )
        return self.passed('composer.json is valid')


__all__ = ['ComposerValidationAnalyzer']
