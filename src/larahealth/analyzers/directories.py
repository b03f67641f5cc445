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

"""Filesystem analyzers: writable directories, maintenance mode and error pages."""

from __future__ import annotations

import os
from pathlib import Path

from larahealth.analyzers._base import Analyzer
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Issue, Severity

# (directory, purpose, severity)
CRITICAL_DIRECTORIES: tuple[tuple[str, str, Severity], ...] = (
    ('storage', 'Required for logs, sessions, cache, and file uploads', Severity.CRITICAL),
    ('storage/app', 'Required for file storage', Severity.HIGH),
    ('storage/framework', 'Required for sessions, cache, and compiled views', Severity.CRITICAL),
    ('storage/framework/cache', 'Required for file-based cache', Severity.HIGH),
    ('storage/framework/sessions', 'Required for file-based sessions', Severity.HIGH),
    ('storage/framework/views', 'Required for compiled Blade templates', Severity.CRITICAL),
    ('storage/logs', 'Required for application logs', Severity.CRITICAL),
    ('bootstrap/cache', 'Required for configuration and route caching', Severity.CRITICAL),
)


def permissions(path: Path) -> str:
    """Octal permission bits of ``path`` (e.g. ``'0755'``), or ``'unknown'``."""
    try:
        mode = path.stat().st_mode
    except OSError:
        return 'unknown'
    return f'{mode & 0o7777:04o}'


class DirectoryWritePermissionsAnalyzer(Analyzer):
    """Laravel writes logs, sessions, compiled views and caches at runtime."""

    metadata = AnalyzerMetadata(
        id='directory-write-permissions',
        name='Directory Write Permissions',
        description='Ensures critical Laravel directories have proper write permissions',
        category=Category.RELIABILITY,
        severity=Severity.CRITICAL,
        tags=('permissions', 'filesystem', 'reliability', 'deployment'),
        docs_url='https://laravel.com/docs/installation#directory-permissions',
    )
    run_on_windows = False

    def run_analysis(self) -> AnalysisResult:
        """Report missing and non-writable directories separately."""
        issues: list[Issue] = []
        for directory, purpose, severity in CRITICAL_DIRECTORIES:
            full_path = self.ctx.path(directory)
            if not full_path.exists():
                issues.append(
                    self.issue(
                        f"Directory '{directory}' does not exist",
                        file=directory,
                        severity=severity,
                        recommendation=(
                            f"Create the '{directory}' directory. {purpose}. "
                            f'Run: mkdir -p {full_path} && chmod -R 775 {full_path}'
                        ),
                        directory=directory,
                        full_path=str(full_path),
                        exists=False,
                    )
                )
                continue

            if not os.access(full_path, os.W_OK):
                current = permissions(full_path)
                issues.append(
                    self.issue(
                        f"Directory '{directory}' is not writable",
                        file=directory,
                        severity=severity,
                        recommendation=(
                            f"Make '{directory}' writable. {purpose}. Run: chmod -R 775 {full_path} or "
                            f'chown -R www-data:www-data {full_path} (adjust user/group as needed). '
                            f'Current permissions: {current}'
                        ),
                        directory=directory,
                        full_path=str(full_path),
                        exists=True,
                        writable=False,
                        permissions=current,
                    )
                )

        if not issues:
            return self.passed('All critical directories have proper write permissions')
        return self.failed(f'Found {len(issues)} directory permission issue(s)', issues)


class MaintenanceModeAnalyzer(Analyzer):
    """``php artisan down`` leaves ``storage/framework/down`` behind."""

    metadata = AnalyzerMetadata(
        id='maintenance-mode-status',
        name='Maintenance Mode Status',
        description='Checks if the application is in maintenance mode',
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=('maintenance', 'availability', 'reliability', 'downtime'),
        docs_url='https://laravel.com/docs/configuration#maintenance-mode',
    )

    def run_analysis(self) -> AnalysisResult:
        """Look for the maintenance marker file."""
        marker = self.ctx.path('storage', 'framework', 'down')
        if not marker.exists():
            return self.passed('Application is not in maintenance mode')
        return self.failed(
            'Application is in maintenance mode',
            [
                self.issue(
                    'Application is currently down for maintenance',
                    file=marker,
                    line=1,
                    severity=Severity.HIGH,
                    recommendation=(
                        'If maintenance is complete, bring the application back online with "php artisan up". '
                        'If maintenance is ongoing, this is expected. Ensure maintenance mode was intentional '
                        'and users are properly notified.'
                    ),
                    is_down=True,
                )
            ],
        )


class CustomErrorPageAnalyzer(Analyzer):
    """Production users should see branded 404/500/503 pages."""

    metadata = AnalyzerMetadata(
        id='custom-error-pages',
        name='Custom Error Pages',
        description='Ensures custom error pages are configured for production to provide better user experience',
        category=Category.RELIABILITY,
        severity=Severity.MEDIUM,
        tags=('errors', 'ux', 'reliability', 'production'),
        docs_url='https://laravel.com/docs/errors#custom-http-error-pages',
    )
    skip_environments = ('local', 'testing')

    # (status code, description)
    PAGES: tuple[tuple[int, str], ...] = (
        (404, 'Not Found'),
        (500, 'Server Error'),
        (503, 'Service Unavailable'),
    )

    def run_analysis(self) -> AnalysisResult:
        """Check ``resources/views/errors`` for the common status pages."""
        errors_dir = self.ctx.path('resources', 'views', 'errors')
        if not errors_dir.is_dir():
            return self.warning(
                'No custom error pages found',
                [
                    self.issue(
                        'Custom error pages directory does not exist',
                        file='resources/views',
                        severity=Severity.MEDIUM,
                        recommendation=(
                            'Create custom error pages for better user experience in production. Run '
                            '"php artisan vendor:publish --tag=laravel-errors" to publish the default error views, '
                            'then customize them. At minimum, create 404.blade.php, 500.blade.php, and '
                            '503.blade.php in resources/views/errors/'
                        ),
                        errors_directory=str(errors_dir),
                    )
                ],
            )

        issues: list[Issue] = []
        for code, description in self.PAGES:
            page = errors_dir / f'{code}.blade.php'
            if page.exists():
                continue
            issues.append(
                self.issue(
                    f'Custom {code} error page not found',
                    file='resources/views/errors',
                    severity=Severity.LOW,
                    recommendation=(
                        f'Create a custom {code} ({description}) error page at '
                        f"resources/views/errors/{code}.blade.php. This provides a better user experience than "
                        "Laravel's default error page. You can publish Laravel's default error views with "
                        "'php artisan vendor:publish --tag=laravel-errors' and customize them."
                    ),
                    error_code=code,
                    description=description,
                    expected_path=str(page),
                )
            )

        if not issues:
            return self.passed('Custom error pages are configured')
        return self.warning(f'Missing {len(issues)} custom error page(s)', issues)


__all__ = [
    'CRITICAL_DIRECTORIES',
    'CustomErrorPageAnalyzer',
    'DirectoryWritePermissionsAnalyzer',
    'MaintenanceModeAnalyzer',
    'permissions',
]
