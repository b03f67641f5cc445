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

"""JSON format output for analysis reports."""

from __future__ import annotations

import json

from larahealth.report import AnalysisReport


def format_json(report: AnalysisReport, *, indent: int = 2) -> str:
    """Render the report as a JSON string.

    Args:
        report: The analysis report.
        indent: JSON indentation level.

    Returns:
        Pretty-printed JSON with the summary and every result.
    """
    return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False, default=str) + '\n'


__all__ = ['format_json']
