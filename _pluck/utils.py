# Copyright (C) 2018-'25  Frank Sachsenheim
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache, partial
from typing import Final, Union


_crunch_whitespace: Final = partial(re.compile(r"\s+").sub, " ")


@lru_cache(64)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern)


def compile_pattern(pattern: Union[str, re.Pattern]) -> re.Pattern:
    """
    Returns a compiled regular expression.

    :raises re.error: If a pattern string is invalid.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    return _compile(pattern)


def extract_regex(pattern: re.Pattern, strings: Iterable[str]) -> list[str]:
    """
    Collects all matches of a pattern in the given strings. If the pattern contains
    capturing groups, the values of all groups that participated in a match are
    collected, otherwise the complete matches.
    """
    result: list[str] = []
    for string in strings:
        for match in pattern.finditer(string):
            if pattern.groups:
                result.extend(x for x in match.groups() if x is not None)
            else:
                result.append(match.group())
    return result


def normalize_space(text: str) -> str:
    return _crunch_whitespace(text).strip()


__all__ = (
    compile_pattern.__name__,
    extract_regex.__name__,
    normalize_space.__name__,
)
