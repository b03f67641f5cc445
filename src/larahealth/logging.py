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

"""Structured logging for larahealth.

Events go to stderr through structlog, rendered as console text or, with
``--json-log``, one JSON object per line. stdout is reserved for the
report itself, so ``larahealth analyze --format json | jq .summary``
keeps working at any verbosity.

Analyzers log command lines, stderr of ``php artisan`` and database
driver errors. Those routinely carry DSNs and passwords, so every string
field of every event passes through
:func:`~larahealth.support.sanitize.redact` before it is rendered.

Usage::

    from larahealth.logging import configure_logging, get_logger

    configure_logging(verbose=True)
    log = get_logger(__name__)
    log.info('analyzer_finished', analyzer='phpstan', status='passed')
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from larahealth.support.sanitize import redact


def redact_secrets(
    _logger: Any,  # noqa: ANN401 - structlog processor signature
    _method: str,
    event_dict: MutableMapping[str, Any],  # noqa: ANN401
) -> MutableMapping[str, Any]:  # noqa: ANN401
    """Redact credentials from every string value of ``event_dict``."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact(value)
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for larahealth.

    Call once from the CLI entry point, before any analyzer runs.

    Args:
        verbose: Enable debug-level output (every subprocess call, every
            skipped analyzer).
        quiet: Only warnings and errors. Wins over ``verbose``.
        json_log: Render events as JSON instead of console text.
    """
    level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(format='%(message)s', stream=sys.stderr, level=level, force=True)

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.UnicodeDecoder(),
            redact_secrets,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def get_logger(name: str = 'larahealth') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger for ``name``."""
    return structlog.get_logger(name)


__all__ = [
    'configure_logging',
    'get_logger',
    'redact_secrets',
]
