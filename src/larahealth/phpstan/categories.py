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

"""Classification table for PHPStan messages.

Each :class:`IssueCategory` bundles the message patterns that belong to
it, its severity, and a keyword → advice table used to build the
recommendation for a concrete message.

Two lookups are offered:

- :func:`classify` walks :data:`ISSUE_CATEGORIES` top to bottom and
  returns the first category that matches (one label per message).
- :func:`categorize` lets every category filter the whole issue list on
  its own, so a message such as ``Call to an undefined method
  App\\Models\\User::posts()`` is reported both as an invalid method
  call and as a missing model relation.

Dispatch::

    PHPStan message
         │
         ▼
    ┌───────────────┐  regex hit?   ┌──────────────────┐
    │ IssueCategory │──────────────▶│ matches = True   │
    │   .matches()  │  pattern hit? │                  │
    └───────┬───────┘──────────────▶└────────┬─────────┘
            │ no                             │
            ▼                                ▼
        next category              .recommend(message)
                                   first keyword in message
                                   wins, else generic advice
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from larahealth.models import Severity
from larahealth.phpstan.runner import PHPStanIssue, wildcard_match


@dataclass(frozen=True)
class IssueCategory:
    """A family of PHPStan messages.

    Attributes:
        key: Stable id (also the id of the single-category analyzer).
        name: Display name, e.g. ``'Dead Code'``.
        description: What the category covers.
        severity: Severity given to every issue in the category.
        patterns: Wildcard patterns (``*`` = anything), anchored.
        regex: Alternative to ``patterns``; searched anywhere.
        recommendations: Ordered ``(keyword, advice)`` pairs. The first
            keyword contained in the message picks the advice.
        issue_title: Title used by the single-category analyzer.
        noun: Plural noun for ``Found N <noun>`` summaries.
    """

    key: str
    name: str
    description: str
    severity: Severity
    patterns: tuple[str, ...] = ()
    regex: re.Pattern[str] | None = None
    recommendations: tuple[tuple[str, str], ...] = ()
    issue_title: str = ''
    noun: str = ''

    def matches(self, message: str) -> bool:
        """Return True if ``message`` belongs to this category."""
        if self.regex is not None:
            return self.regex.search(message) is not None
        return any(wildcard_match(p, message) for p in self.patterns)

    def filter(self, issues: Iterable[PHPStanIssue]) -> list[PHPStanIssue]:
        """Keep the issues in this category, preserving order."""
        return [i for i in issues if self.matches(i.message)]

    def recommend(self, message: str) -> str:
        """Build the remediation text for ``message``."""
        for keyword, advice in self.recommendations:
            if keyword in message:
                return f'{advice} PHPStan message: {message}'
        return f'Fix the {self.name} detected by PHPStan. PHPStan message: {message}'


_VISIBILITY_METHOD = 'Fix the method visibility - you are calling a private/protected method outside its scope.'
_VISIBILITY_PROPERTY = 'Fix the property visibility - you are accessing a private/protected property outside its scope.'

ISSUE_CATEGORIES: tuple[IssueCategory, ...] = (
    IssueCategory(
        key='dead-code',
        name='Dead Code',
        description='Unreachable code, unused variables, and statements with no effect',
        severity=Severity.MEDIUM,
        patterns=(
            '*does not do anything*',
            'Unreachable statement*',
            '* is unused*',
            'Empty array passed*',
            'Dead catch*',
            '*has no effect*',
            '*will never be executed*',
            'Left side of && is always *',
            'Left side of || is always *',
            'Right side of && is always *',
            'Right side of || is always *',
            'Result of && is always *',
            'Result of || is always *',
            'Negated boolean expression is always *',
            'Strict comparison using * will always evaluate to *',
            'Comparison operation * between * and * is always *',
        ),
        recommendations=(
            (
                'Unreachable statement',
                'Remove unreachable code - this statement will never be executed. '
                'Check for early returns, throws, or exits before this code.',
            ),
            (
                'is unused',
                'Remove unused code - this variable, parameter, or import is never used. '
                'Clean up your code by removing it.',
            ),
            (
                'does not do anything',
                'This statement has no effect - it does not modify state or return a value. '
                'Either use the result or remove the statement.',
            ),
            (
                'always',
                'Remove redundant condition - this expression always evaluates to the same value. '
                'Simplify your logic or remove the dead branch.',
            ),
        ),
        issue_title='Dead code detected',
        noun='dead code issue(s)',
    ),
    IssueCategory(
        key='deprecated-code',
        name='Deprecated Code',
        description='Usage of deprecated methods, classes, and functions',
        severity=Severity.HIGH,
        regex=re.compile(r'\s*deprecated\s*', re.IGNORECASE),
        recommendations=(
            (
                'method',
                'Replace deprecated method - this method is marked as deprecated and may be removed in '
                'future versions. Check the documentation for the recommended alternative.',
            ),
            (
                'class',
                'Replace deprecated class/interface - this type is marked as deprecated. Migrate to the '
                'recommended alternative to ensure compatibility with future versions.',
            ),
            (
                'function',
                'Replace deprecated function - this function is marked as deprecated. '
                'Use the recommended alternative function.',
            ),
            (
                'constant',
                'Replace deprecated constant - this constant is marked as deprecated. '
                'Use the recommended alternative constant.',
            ),
        ),
        issue_title='Deprecated code usage detected',
        noun='deprecated code usage(s)',
    ),
    IssueCategory(
        key='foreach-iterable',
        name='Foreach Iterable Issues',
        description='Invalid foreach usage with non-iterable values',
        severity=Severity.HIGH,
        patterns=(
            'Argument of an invalid type * supplied for foreach*',
            'Cannot use * in a foreach loop*',
            'Iterating over * but * does not specify*',
        ),
        recommendations=(
            (
                'invalid type',
                'Fix the foreach loop - the variable being iterated is not of an iterable type. Ensure the '
                'variable is an array, Traversable, or Iterator before using it in a foreach loop.',
            ),
            (
                'Cannot use',
                'Fix the foreach loop - the value cannot be used in a foreach loop. Check the type of the '
                'variable and ensure it implements Traversable or is an array.',
            ),
            (
                'does not specify',
                'Fix the foreach loop - the type does not specify that it is iterable. Add proper type hints '
                'or ensure the variable is iterable before using it in a foreach loop.',
            ),
        ),
        issue_title='Invalid foreach usage detected',
        noun='invalid foreach usage(s)',
    ),
    IssueCategory(
        key='invalid-function-calls',
        name='Invalid Function Calls',
        description='Calls to undefined functions or invalid function parameters',
        severity=Severity.HIGH,
        patterns=(
            'Function * not found*',
            'Function * invoked with * parameter*',
            'Parameter * of function * expects*',
            'Missing parameter * in call to function *',
            'Unknown parameter * in call to function *',
            'Parameter * of * expects * given*',
            'Result of function * (void) is used*',
            'Cannot call function * on *',
        ),
        recommendations=(
            (
                'not found',
                'Fix the function call - the function does not exist. Check for typos in the function '
                'name or ensure the function is defined.',
            ),
            (
                'Parameter',
                'Fix the function parameters - they do not match the function signature. '
                'Check the parameter types, order, and count.',
            ),
        ),
        issue_title='Invalid function call detected',
        noun='invalid function call(s)',
    ),
    IssueCategory(
        key='invalid-imports',
        name='Invalid Imports',
        description='Usage of non-existent classes, interfaces, or traits',
        severity=Severity.CRITICAL,
        patterns=(
            'Used * not found*',
            'Class * not found*',
            'Interface * not found*',
            'Trait * not found*',
            'Instantiated class * not found*',
            'Reflection class * does not exist*',
        ),
        recommendations=(
            (
                'not found',
                'Fix the import - the class, interface, or trait does not exist. Check for typos in the '
                'import statement or ensure the file exists.',
            ),
        ),
        issue_title='Invalid import detected',
        noun='invalid import(s)',
    ),
    IssueCategory(
        key='invalid-method-calls',
        name='Invalid Method Calls',
        description='Calls to undefined methods or invalid method parameters',
        severity=Severity.CRITICAL,
        patterns=(
            'Method * invoked with *',
            'Parameter * of method * is passed by reference, so *',
            'Unable to resolve the template *',
            'Missing parameter * in call to *',
            'Unknown parameter * in call to *',
            'Call to method * on an unknown class *',
            'Cannot call method * on *',
            'Call to private method * of parent class *',
            'Call to an undefined method *',
            'Call to * method * of class *',
            'Call to an undefined static method *',
            'Static call to instance method *',
            'Calling *::* outside of class scope*',
            '*::* calls parent::* but *',
            'Call to static method * on an unknown class *',
            'Cannot call static method * on *',
            'Cannot call abstract* method *::*',
            '* invoked with * parameter* required*',
            'Parameter * of * expects * given*',
            'Result of * (void) is used*',
            'Result of method *',
        ),
        recommendations=(
            (
                'Eloquent\\Builder',
                'Fix the method call - if this is an Eloquent local scope, narrow the Builder type with an '
                'inline @var annotation: /** @var \\Illuminate\\Database\\Eloquent\\Builder<\\App\\Models\\YourModel> '
                '$query */. This is the simplest fix when calling scopes inside closures. Alternatively, add a '
                '@method annotation to the model: /** @method static \\Illuminate\\Database\\Eloquent\\Builder<static> '
                'sent() */. Larastan recognizes most scopes automatically, but scopes inside closures, traits, '
                'or parent models may need these annotations.',
            ),
            (
                'undefined method',
                'Fix the method call - the method does not exist on this class. Check for typos in the '
                'method name or ensure the method is defined.',
            ),
            (
                'Parameter',
                'Fix the method parameters - they do not match the method signature. '
                'Check the parameter types, order, and count.',
            ),
            ('private', _VISIBILITY_METHOD),
            ('protected', _VISIBILITY_METHOD),
        ),
        issue_title='Invalid method call detected',
        noun='invalid method call(s)',
    ),
    IssueCategory(
        key='invalid-method-overrides',
        name='Invalid Method Overrides',
        description='Incompatible method overrides in child classes',
        severity=Severity.HIGH,
        patterns=(
            'Return type * of method *::* is not covariant with*',
            'Parameter * of method *::* is not contravariant with*',
            'Method *::* overrides method *::* but is missing parameter *',
            'Method *::* has parameter * with no type*',
            'Overridden method *::* is deprecated*',
            'Method *::* with return type * returns * but should return *',
            'Method *::* extends method *::* but changes visibility from *',
            'Method *::* overrides *::* with different parameter *',
            'Method *::* is not compatible with *::*',
            'Method *::* never returns * so it can be removed from*',
        ),
        recommendations=(
            (
                'covariant',
                'Fix the method override - the return type is not covariant with the parent method. '
                'Ensure the return type is compatible.',
            ),
            (
                'contravariant',
                'Fix the method override - the parameter type is not contravariant with the parent method. '
                'Ensure the parameter type is compatible.',
            ),
            (
                'visibility',
                'Fix the method override - you cannot change method visibility when overriding. '
                'Use the same visibility as the parent method.',
            ),
        ),
        issue_title='Invalid method override detected',
        noun='invalid method override(s)',
    ),
    IssueCategory(
        key='invalid-offset-access',
        name='Invalid Offset Access',
        description='Invalid array or object offset access',
        severity=Severity.HIGH,
        patterns=(
            'Cannot assign * offset * to *',
            'Cannot access offset * on *',
            'Offset * does not exist on *',
            'Offset * might not exist on *',
            'Offset * on * always exists*',
            'Cannot unset offset * on *',
            'Offset * on * does not accept type *',
            'Offset string on * in isset*',
        ),
        recommendations=(
            (
                'does not exist',
                'Fix the offset access - the offset does not exist on this array or object. '
                'Check the offset key or ensure it exists before accessing.',
            ),
            (
                'might not exist',
                'Fix the offset access - the offset might not exist. '
                'Add an isset() check before accessing the offset.',
            ),
        ),
        issue_title='Invalid offset access detected',
        noun='invalid offset access(es)',
    ),
    IssueCategory(
        key='invalid-property-access',
        name='Invalid Property Access',
        description='Access to undefined or inaccessible properties',
        severity=Severity.HIGH,
        patterns=(
            'Access to * property *',
            'Cannot access property * on *',
            'Access to an undefined property *',
            'Access to undefined property *',
            'Property * of class * is unused*',
            'Property * does not accept *',
            'Static property * does not exist*',
            'Access to static property * on *',
            'Property * on * is not defined*',
            'Property * in * is not readable*',
            'Property * in * is not writable*',
        ),
        recommendations=(
            (
                'Access to an undefined property',
                'Fix the property access - the property does not exist on this class. If this is an '
                'Eloquent Attribute accessor, add a generic return type PHPDoc: /** @return Attribute<string, '
                'never> */. Larastan requires generic Attribute<TGet, TSet> annotations to recognize '
                'accessor-defined properties.',
            ),
            (
                'undefined property',
                'Fix the property access - the property does not exist on this class. Check for typos in '
                'the property name or ensure the property is defined.',
            ),
            ('private', _VISIBILITY_PROPERTY),
            ('protected', _VISIBILITY_PROPERTY),
        ),
        issue_title='Invalid property access detected',
        noun='invalid property access(es)',
    ),
    IssueCategory(
        key='missing-model-relation',
        name='Missing Model Relations',
        description='References to undefined Eloquent model relations',
        severity=Severity.HIGH,
        patterns=(
            'Relation * is not found in * model*',
            'Call to an undefined method *Model::*',
            'Access to an undefined property *Model::$*',
        ),
        recommendations=(
            (
                'not found',
                'Fix the model relation - the relation does not exist on this model. '
                'Ensure the relation method is defined in the model.',
            ),
        ),
        issue_title='Missing or invalid model relation detected',
        noun='missing model relation(s)',
    ),
    IssueCategory(
        key='missing-return-statement',
        name='Missing Return Statements',
        description='Methods missing required return statements',
        severity=Severity.HIGH,
        patterns=(
            '* return statement is missing*',
            'Method * should return * but return statement is missing*',
            'Function * should return * but return statement is missing*',
        ),
        recommendations=(
            (
                'return statement is missing',
                'Add a return statement - this method is expected to return a value '
                'but is missing a return statement.',
            ),
        ),
        issue_title='Missing return statement detected',
        noun='missing return statement(s)',
    ),
    IssueCategory(
        key='undefined-constant',
        name='Undefined Constants',
        description='References to undefined constants',
        severity=Severity.HIGH,
        patterns=(
            '* undefined constant *',
            'Using * outside of class scope*',
            'Access to constant * on an unknown class *',
            'Constant * does not exist*',
            'Class constant * not found*',
        ),
        recommendations=(
            (
                'undefined constant',
                'Fix the constant reference - the constant does not exist. Check for typos in the '
                'constant name or ensure the constant is defined.',
            ),
        ),
        issue_title='Undefined constant detected',
        noun='undefined constant(s)',
    ),
    IssueCategory(
        key='undefined-variable',
        name='Undefined Variables',
        description='References to undefined variables',
        severity=Severity.HIGH,
        patterns=(
            'Undefined variable*',
            'Variable * might not be defined*',
            'Variable * in isset* always exists*',
        ),
        recommendations=(
            (
                'Undefined variable',
                'Fix the variable reference - the variable is used before it is defined. '
                'Ensure the variable is initialized before use.',
            ),
            (
                'might not be defined',
                'Fix the variable reference - the variable might not be defined in all code paths. '
                'Ensure the variable is initialized in all branches.',
            ),
        ),
        issue_title='Undefined variable detected',
        noun='undefined variable(s)',
    ),
)

CATEGORIES_BY_KEY: dict[str, IssueCategory] = {c.key: c for c in ISSUE_CATEGORIES}


def get_category(key: str) -> IssueCategory | None:
    """Return the category registered under ``key``."""
    return CATEGORIES_BY_KEY.get(key)


def classify(message: str) -> IssueCategory | None:
    """Return the first category (in table order) matching ``message``."""
    for category in ISSUE_CATEGORIES:
        if category.matches(message):
            return category
    return None


def categorize(
    issues: Sequence[PHPStanIssue],
    categories: Iterable[IssueCategory] = ISSUE_CATEGORIES,
) -> dict[str, list[PHPStanIssue]]:
    """Group ``issues`` by category; each category filters independently.

    Every requested category gets a key, even when it has no issues.
    """
    return {category.key: category.filter(issues) for category in categories}


def resolve_categories(enabled: Iterable[str], disabled: Iterable[str]) -> list[IssueCategory]:
    """Turn ``phpstan.categories`` / ``disabled_categories`` into categories.

    An empty ``enabled`` means every category. Unknown keys are ignored.
    """
    enabled_keys = list(enabled) or [c.key for c in ISSUE_CATEGORIES]
    disabled_keys = set(disabled)
    return [
        CATEGORIES_BY_KEY[key] for key in enabled_keys if key in CATEGORIES_BY_KEY and key not in disabled_keys
    ]


__all__ = [
    'CATEGORIES_BY_KEY',
    'ISSUE_CATEGORIES',
    'IssueCategory',
    'categorize',
    'classify',
    'get_category',
    'resolve_categories',
]
