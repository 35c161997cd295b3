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
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, NamedTuple


if TYPE_CHECKING:
    from typing import Final


# constants & data structures

TokenType: Final = Enum(
    "TokenType",
    "STRING NUMBER NAME SLASH_SLASH SLASH ASTERISK AXIS_SEPARATOR DOT_DOT DOT "
    "OPEN_BRACKET CLOSE_BRACKET STRUDEL OPEN_PARENS CLOSE_PARENS COMMA PASEQ "
    "OTHER_OPS ERROR",
)


COMPLEMENTING_TOKEN_TYPES: Final = {
    TokenType.OPEN_BRACKET: TokenType.CLOSE_BRACKET,
    TokenType.OPEN_PARENS: TokenType.CLOSE_PARENS,
}


class Token(NamedTuple):
    position: int
    string: str
    type: TokenType


# token definition


def alternatives(*choices: str) -> str:
    return "|".join(choices)


def named_group(name: str, content: str) -> str:
    return f"(?P<{name}>{content})"


def named_group_reference(name: str) -> str:
    return f"(?P={name})"


string_pattern: Final = (
    named_group("stringDelimiter", """["']""")  # opening string delimiter
    + "("
    + alternatives(
        r"\\.",  # either a backslash followed by any character
        r"[^\\]",  # or any one character except a backslash
    )
    + ")"
    + "*?"  # non-greedy until the reoccurring opening delimiter as:
    + named_group_reference("stringDelimiter")  # closing string delimiter
)

_name_start: Final = r"[^\W\d]"
name_pattern: Final = rf"{_name_start}[\w.-]*(?::{_name_start}[\w.-]*)?"


iterate_tokens: Final = re.compile(
    alternatives(
        named_group("STRING", string_pattern),
        named_group("NUMBER", r"\d+(?:\.\d+)?"),
        named_group("NAME", name_pattern),
        named_group("SLASH_SLASH", "//"),
        named_group("SLASH", "/"),
        named_group("ASTERISK", r"\*"),
        named_group("AXIS_SEPARATOR", "::"),
        named_group("DOT_DOT", r"\.\."),
        named_group("DOT", r"\."),
        named_group("OPEN_BRACKET", r"\["),
        named_group("CLOSE_BRACKET", r"\]"),
        named_group("STRUDEL", "@"),
        named_group("OPEN_PARENS", r"\("),
        named_group("CLOSE_PARENS", r"\)"),
        named_group("COMMA", ","),
        named_group("PASEQ", r"\|"),
        named_group("OTHER_OPS", alternatives("!=", "<=", ">=", "<", ">", "=")),
        named_group("WHITESPACE", r"\s+"),
        named_group("ERROR", "(?s:.+)"),
    ),
    re.UNICODE,
).finditer


# interface


@lru_cache(64)
def tokenize(expression: str) -> tuple[Token, ...]:
    """
    Splits an expression into tokens. Whitespace is dropped. Unrecognizable input
    ends up as one final token of the type ``ERROR`` that spans the rest of the
    expression.
    """
    result = []

    for match in iterate_tokens(expression):
        assert match is not None
        token_type = match.lastgroup
        if token_type == "WHITESPACE":
            continue
        assert token_type is not None
        result.append(
            Token(
                position=match.start(),
                string=match.group(),
                type=TokenType[token_type],
            )
        )

    return tuple(result)


def unquote(string: str) -> str:
    """Strips the delimiters from a string token and resolves escaped characters."""
    return re.sub(r"\\(.)", r"\1", string[1:-1])


__all__ = (
    tokenize.__name__,  # type: ignore
    unquote.__name__,
    Token.__name__,
    "TokenType",
)
