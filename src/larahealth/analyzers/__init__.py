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

"""Health checks for ``larahealth analyze``.

Every analyzer is a subclass of :class:`Analyzer` bound to a
:class:`~larahealth.laravel.ProjectContext`. :data:`ANALYZERS` is the
registry the manager and the CLI iterate, in report order.

Analyzer catalogue::

    ┌───────────────────────────────┬──────────┬─────────────┬───────────────────────────────┐
    │ Analyzer                      │ Severity │ Gating      │ What it catches               │
    ├───────────────────────────────┼──────────┼─────────────┼───────────────────────────────┤
    │ composer-validation           │ critical │             │ Broken composer.json          │
    │ env-file-exists               │ critical │             │ Missing .env                  │
    │ env-example-documented        │ low      │             │ .env keys not in .env.example │
    │ env-variables-complete        │ high     │             │ .env.example keys not in .env │
    │ directory-write-permissions   │ critical │ not Windows │ Unwritable storage dirs       │
    │ maintenance-mode-status       │ high     │             │ App left in `artisan down`    │
    │ cache-prefix-configuration    │ high     │ shared only │ Empty or generic cache prefix │
    │ cache-status                  │ critical │ not CI      │ Cache store round-trip fails  │
    │ database-status               │ critical │ not CI      │ Connection cannot be opened   │
    │ up-to-date-migrations         │ high     │ not CI      │ Pending migrations            │
    │ queue-timeout-configuration   │ high     │             │ retry_after ≤ timeout+buffer  │
    │ custom-error-pages            │ medium   │ not local   │ No 404/500/503 views          │
    │ env-call-outside-config       │ high     │             │ env() outside config/         │
    │ phpstan                       │ high     │             │ All PHPStan categories        │
    │ dead-code … undefined-variable│ varies   │             │ One PHPStan category each     │
    │ collection-call-optimization  │ high     │             │ Collection work in PHP        │
    └───────────────────────────────┴──────────┴─────────────┴───────────────────────────────┘
"""

from larahealth.analyzers._base import Analyzer
from larahealth.analyzers.cache import CachePrefixAnalyzer, CacheStatusAnalyzer
from larahealth.analyzers.composer import ComposerValidationAnalyzer
from larahealth.analyzers.database import DatabaseStatusAnalyzer
from larahealth.analyzers.directories import (
    CustomErrorPageAnalyzer,
    DirectoryWritePermissionsAnalyzer,
    MaintenanceModeAnalyzer,
)
from larahealth.analyzers.env import EnvExampleAnalyzer, EnvFileAnalyzer, EnvVariableAnalyzer
from larahealth.analyzers.env_calls import EnvCallAnalyzer
from larahealth.analyzers.migrations import UpToDateMigrationsAnalyzer
from larahealth.analyzers.phpstan import (
    PHPSTAN_CATEGORY_ANALYZERS,
    CollectionCallAnalyzer,
    PHPStanAnalyzer,
)
from larahealth.analyzers.queue import QueueTimeoutAnalyzer

ANALYZERS: tuple[type[Analyzer], ...] = (
    ComposerValidationAnalyzer,
    EnvFileAnalyzer,
    EnvExampleAnalyzer,
    EnvVariableAnalyzer,
    DirectoryWritePermissionsAnalyzer,
    MaintenanceModeAnalyzer,
    CachePrefixAnalyzer,
    CacheStatusAnalyzer,
    DatabaseStatusAnalyzer,
    UpToDateMigrationsAnalyzer,
    QueueTimeoutAnalyzer,
    CustomErrorPageAnalyzer,
    EnvCallAnalyzer,
    PHPStanAnalyzer,
    *PHPSTAN_CATEGORY_ANALYZERS,
    CollectionCallAnalyzer,
)

__all__ = [
    'ANALYZERS',
    'Analyzer',
]
