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

"""Report formatters for larahealth.

Each formatter is a pure function: ``report → str``. Printing and
writing files is left to the CLI.

Available formats:

- **console**: Human-readable summary rendered with rich
- **json**: Machine-readable JSON (``AnalysisReport.to_dict()``)

Usage::

    from larahealth.formatters import format_report

    output = format_report(report, fmt='json')
    print(output)
"""

from __future__ import annotations

from larahealth.formatters.registry import FORMATTERS, format_report

__all__ = [
    'FORMATTERS',
    'format_report',
]
