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

"""
A best-effort parser for the supported XPath subset. It never raises: whatever can't
be parsed is reported as :attr:`LocationPath.remainder`, predicates that can't be
interpreted are dropped and listed in :attr:`LocationPath.ignored_predicates`.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING, Optional, Union

from _pluck.exceptions import XPathParsingError
from _pluck.nodes import TextNode
from _pluck.xpath.ast import (
    AXIS_NAMES,
    OPERATORS,
    STRING_TESTS,
    AnyNameTest,
    AttributeComparison,
    AttributeStringTest,
    Axis,
    BooleanOperator,
    CountComparison,
    EvaluationNode,
    HasAttribute,
    HasDescendant,
    IsLast,
    LocationPath,
    LocationStep,
    NameMatchTest,
    NodeTestNode,
    NodeTypeTest,
    Not,
    PositionComparison,
    StringLengthComparison,
    SubstringAfterComparison,
    SubstringBeforeComparison,
    SubstringComparison,
    TextComparison,
    TextStringTest,
    TranslateComparison,
)
from _pluck.xpath.tokenizer import (
    COMPLEMENTING_TOKEN_TYPES,
    Token,
    TokenType,
    tokenize,
    unquote,
)


if TYPE_CHECKING:
    from typing import Final, TypeAlias


TokenPattern: TypeAlias = Sequence[TokenType]
Tokens: TypeAlias = Sequence[Token]


NODE_TYPE_TESTS: Final = {"node": None, "text": TextNode}
# the mirrored operator for comparisons that are noted with the literal on the left
REFLECTED_OPERATORS: Final = {
    "<=": ">=",
    "<": ">",
    ">=": "<=",
    ">": "<",
    "=": "=",
    "!=": "!=",
}
EQUALITY_OPERATORS: Final = ("=", "!=")


# token matching


def all_tokens_match(tokens: Tokens, pattern: TokenPattern) -> bool:
    if len(tokens) != len(pattern):
        return False
    return initial_tokens_match(tokens, pattern)


def initial_tokens_match(tokens: Tokens, pattern: TokenPattern) -> bool:
    if len(tokens) < len(pattern):
        return False
    return all(t.type is p for t, p in zip(tokens, pattern))


def find_closing_token(tokens: Tokens, start: int) -> Optional[int]:
    """
    Returns the index of the token that closes the bracket or parenthesis at index
    ``start`` or :obj:`None` if there is none.
    """
    openers: list[TokenType] = []
    for i in range(start, len(tokens)):
        token_type = tokens[i].type
        if token_type in COMPLEMENTING_TOKEN_TYPES:
            openers.append(token_type)
        elif token_type in (TokenType.CLOSE_BRACKET, TokenType.CLOSE_PARENS):
            if not openers or COMPLEMENTING_TOKEN_TYPES[openers[-1]] is not token_type:
                return None
            openers.pop()
            if not openers:
                return i
    return None


def partition_tokens(
    is_separator: Callable[[Token], bool], tokens: Tokens
) -> list[Tokens]:
    """
    Splits tokens at separators that are not enclosed in brackets or parentheses.
    """
    result: list[Tokens] = []
    current_partition: list[Token] = []
    depth = 0

    for token in tokens:
        if token.type in COMPLEMENTING_TOKEN_TYPES:
            depth += 1
        elif token.type in (TokenType.CLOSE_BRACKET, TokenType.CLOSE_PARENS):
            depth -= 1
        elif depth == 0 and is_separator(token):
            result.append(current_partition)
            current_partition = []
            continue
        current_partition.append(token)

    result.append(current_partition)
    return result


def _is_keyword(keyword: str) -> Callable[[Token], bool]:
    return lambda t: t.type is TokenType.NAME and t.string == keyword


def _is_type(token_type: TokenType) -> Callable[[Token], bool]:
    return lambda t: t.type is token_type


def match_function_call(tokens: Tokens) -> Optional[tuple[str, list[Tokens]]]:
    """
    Returns the name and the arguments' tokens if the tokens represent exactly one
    function call.
    """
    if not initial_tokens_match(tokens, (TokenType.NAME, TokenType.OPEN_PARENS)):
        return None
    if find_closing_token(tokens, 1) != len(tokens) - 1:
        return None
    inner = tokens[2:-1]
    if not inner:
        return tokens[0].string, []
    return tokens[0].string, partition_tokens(_is_type(TokenType.COMMA), inner)


def _is_text_source(tokens: Tokens) -> bool:
    return all_tokens_match(tokens, (TokenType.DOT,)) or (
        match_function_call(tokens) == ("text", [])
    )


def _literal(tokens: Tokens) -> Union[None, float, str]:
    if all_tokens_match(tokens, (TokenType.STRING,)):
        return unquote(tokens[0].string)
    if all_tokens_match(tokens, (TokenType.NUMBER,)):
        return float(tokens[0].string)
    return None


def _string_literal(tokens: Tokens) -> str:
    if all_tokens_match(tokens, (TokenType.STRING,)):
        return unquote(tokens[0].string)
    if all_tokens_match(tokens, (TokenType.NUMBER,)):
        return tokens[0].string
    raise XPathParsingError(message="Expected a string literal.")


def _int_literal(tokens: Tokens) -> int:
    if not all_tokens_match(tokens, (TokenType.NUMBER,)):
        raise XPathParsingError(message="Expected a number.")
    return int(float(tokens[0].string))


# predicates


def parse_predicate(tokens: Tokens) -> EvaluationNode:
    """
    Parses the contents of a predicate. ``or`` binds weaker than ``and``.

    :raises XPathParsingError: If the expression isn't one of the supported forms.
    """
    if not tokens:
        raise XPathParsingError(message="Empty predicate.")

    for keyword in ("or", "and"):
        operands = partition_tokens(_is_keyword(keyword), tokens)
        if len(operands) > 1:
            if not all(operands):
                raise XPathParsingError(
                    position=tokens[0].position,
                    message=f"Missing operand for `{keyword}`.",
                )
            result = parse_predicate(operands[0])
            for operand in operands[1:]:
                result = BooleanOperator(
                    OPERATORS[keyword], result, parse_predicate(operand)
                )
            return result

    return parse_predicate_term(tokens)


def parse_predicate_term(tokens: Tokens) -> EvaluationNode:  # noqa: C901
    if all_tokens_match(tokens, (TokenType.NUMBER,)):
        return PositionComparison(operator.eq, float(tokens[0].string))

    if all_tokens_match(tokens, (TokenType.STRUDEL, TokenType.NAME)):
        return HasAttribute(tokens[1].string)

    if all_tokens_match(tokens, (TokenType.NAME,)):
        return HasDescendant(tokens[0].string)

    if (
        initial_tokens_match(tokens, (TokenType.OPEN_PARENS,))
        and find_closing_token(tokens, 0) == len(tokens) - 1
    ):
        return parse_predicate(tokens[1:-1])

    comparison = partition_tokens(_is_type(TokenType.OTHER_OPS), tokens)
    if len(comparison) == 2:
        left, right = comparison
        operator_token = tokens[len(left)]
        return parse_comparison(left, operator_token.string, right)
    elif len(comparison) > 2:
        raise XPathParsingError(
            position=tokens[0].position, message="Chained comparisons."
        )

    if (call := match_function_call(tokens)) is None:
        raise XPathParsingError(
            position=tokens[0].position, message="Unrecognized predicate expression."
        )

    name, arguments = call

    if name == "last" and not arguments:
        return IsLast()

    if name == "not" and len(arguments) == 1:
        return Not(parse_predicate(arguments[0]))

    if name in STRING_TESTS and len(arguments) == 2:
        subject, value = arguments
        function = STRING_TESTS[name]
        if all_tokens_match(subject, (TokenType.STRUDEL, TokenType.NAME)):
            return AttributeStringTest(
                function, subject[1].string, _string_literal(value)
            )
        if _is_text_source(subject):
            return TextStringTest(function, _string_literal(value))

    raise XPathParsingError(
        position=tokens[0].position, message=f"Unsupported function `{name}`."
    )


def parse_comparison(left: Tokens, operator_: str, right: Tokens) -> EvaluationNode:
    if not left or not right:
        raise XPathParsingError(message="Missing operand.")

    literal = _literal(right)
    subject = left
    if literal is None:
        literal = _literal(left)
        subject = right
        operator_ = REFLECTED_OPERATORS[operator_]
    if literal is None:
        raise XPathParsingError(
            position=left[0].position, message="A comparison needs a literal operand."
        )

    function = OPERATORS[operator_]

    if all_tokens_match(subject, (TokenType.STRUDEL, TokenType.NAME)):
        _require_equality(operator_)
        return AttributeComparison(
            subject[1].string, function, _literal_as_string(literal)
        )

    if _is_text_source(subject):
        _require_equality(operator_)
        return TextComparison(function, _literal_as_string(literal))

    if (call := match_function_call(subject)) is None:
        raise XPathParsingError(
            position=subject[0].position, message="Unrecognized comparison operand."
        )

    name, arguments = call

    if name == "position" and not arguments:
        return PositionComparison(function, _numeric(literal))

    if name == "count" and len(arguments) == 1:
        if not all_tokens_match(arguments[0], (TokenType.NAME,)):
            raise XPathParsingError(message="`count` expects an element name.")
        return CountComparison(arguments[0][0].string, function, _numeric(literal))

    if name == "string-length" and (
        not arguments or (len(arguments) == 1 and _is_text_source(arguments[0]))
    ):
        return StringLengthComparison(function, _numeric(literal))

    if name == "normalize-space" and (
        not arguments or (len(arguments) == 1 and _is_text_source(arguments[0]))
    ):
        _require_equality(operator_)
        return TextComparison(function, _literal_as_string(literal), normalize=True)

    if not arguments or not _is_text_source(arguments[0]):
        raise XPathParsingError(
            position=subject[0].position, message=f"Unsupported function `{name}`."
        )

    _require_equality(operator_)
    value = _literal_as_string(literal)

    if name == "substring" and len(arguments) in (2, 3):
        return SubstringComparison(
            start=_int_literal(arguments[1]),
            length=_int_literal(arguments[2]) if len(arguments) == 3 else None,
            operator=function,
            value=value,
        )

    if name == "substring-after" and len(arguments) == 2:
        return SubstringAfterComparison(_string_literal(arguments[1]), function, value)

    if name == "substring-before" and len(arguments) == 2:
        return SubstringBeforeComparison(
            _string_literal(arguments[1]), function, value
        )

    if name == "translate" and len(arguments) == 3:
        return TranslateComparison(
            _string_literal(arguments[1]),
            _string_literal(arguments[2]),
            function,
            value,
        )

    raise XPathParsingError(
        position=subject[0].position, message=f"Unsupported function `{name}`."
    )


def _literal_as_string(literal: Union[float, str]) -> str:
    if isinstance(literal, float):
        return str(int(literal)) if literal.is_integer() else str(literal)
    return literal


def _numeric(literal: Union[float, str]) -> float:
    if isinstance(literal, str):
        raise XPathParsingError(message="Expected a number.")
    return literal


def _require_equality(operator_: str):
    if operator_ not in EQUALITY_OPERATORS:
        raise XPathParsingError(
            message=f"Strings can't be compared with `{operator_}`."
        )


# location steps


def parse_location_step(
    expression: str,
    tokens: Tokens,
    index: int,
    ignored_predicates: list[str],
) -> tuple[LocationStep, int]:
    """
    Parses one location step that starts at ``index`` and returns it along with the
    index of the first token that doesn't belong to it.

    :raises XPathParsingError: If no step can be read.
    """
    start = index
    axis_name = "child"

    # axis

    if initial_tokens_match(tokens[index:], (TokenType.DOT, TokenType.SLASH_SLASH)):
        axis_name = "descendant"
        index += 2
    elif initial_tokens_match(tokens[index:], (TokenType.DOT, TokenType.SLASH)):
        index += 2
    elif initial_tokens_match(tokens[index:], (TokenType.SLASH_SLASH,)):
        axis_name = "descendant"
        index += 1
    elif initial_tokens_match(tokens[index:], (TokenType.SLASH,)):
        index += 1
    elif index > 0:
        raise XPathParsingError(
            position=tokens[index].position, message="Missing location step separator."
        )

    if initial_tokens_match(tokens[index:], (TokenType.DOT_DOT,)):
        return LocationStep(Axis("parent"), NodeTypeTest(None)), index + 1
    if initial_tokens_match(tokens[index:], (TokenType.DOT,)):
        return LocationStep(Axis("self"), NodeTypeTest(None)), index + 1

    if (
        initial_tokens_match(tokens[index:], (TokenType.NAME, TokenType.AXIS_SEPARATOR))
        and tokens[index].string in AXIS_NAMES
    ):
        axis_name = tokens[index].string
        index += 2

    # node test

    node_test: NodeTestNode
    remaining = tokens[index:]

    if initial_tokens_match(remaining, (TokenType.STRUDEL, TokenType.NAME)):
        return (
            LocationStep(Axis("attribute"), NameMatchTest(remaining[1].string)),
            index + 2,
        )
    if initial_tokens_match(remaining, (TokenType.STRUDEL, TokenType.ASTERISK)):
        return LocationStep(Axis("attribute"), AnyNameTest()), index + 2

    if initial_tokens_match(
        remaining, (TokenType.NAME, TokenType.OPEN_PARENS, TokenType.CLOSE_PARENS)
    ):
        if remaining[0].string not in NODE_TYPE_TESTS:
            raise XPathParsingError(
                position=remaining[0].position, message="Unrecognized node test."
            )
        node_test = NodeTypeTest(NODE_TYPE_TESTS[remaining[0].string])
        index += 3
    elif initial_tokens_match(remaining, (TokenType.ASTERISK,)):
        node_test = AnyNameTest()
        index += 1
    elif initial_tokens_match(remaining, (TokenType.NAME,)) and not (
        initial_tokens_match(remaining, (TokenType.NAME, TokenType.AXIS_SEPARATOR))
        or initial_tokens_match(remaining, (TokenType.NAME, TokenType.OPEN_PARENS))
    ):
        node_test = NameMatchTest(remaining[0].string)
        index += 1
    else:
        position = tokens[index].position if index < len(tokens) else None
        raise XPathParsingError(
            position=tokens[start].position if position is None else position,
            message="Unrecognized node test.",
        )

    if axis_name == "attribute":
        return LocationStep(Axis(axis_name), node_test), index

    # predicates

    predicates = []
    while initial_tokens_match(tokens[index:], (TokenType.OPEN_BRACKET,)):
        closing = find_closing_token(tokens, index)
        if closing is None:
            break
        try:
            predicates.append(parse_predicate(tokens[index + 1 : closing]))
        except XPathParsingError:
            end = tokens[closing].position + 1
            ignored_predicates.append(expression[tokens[index].position : end])
        index = closing + 1

    return LocationStep(Axis(axis_name), node_test, predicates), index


@lru_cache(64)
def parse(expression: str) -> LocationPath:
    """
    Parses an expression into a :class:`LocationPath`. Location steps are read until
    the expression is consumed or the next one can't be read.
    """
    tokens = tokenize(expression)
    steps = []
    ignored_predicates: list[str] = []
    index = 0

    while index < len(tokens):
        try:
            step, index = parse_location_step(
                expression, tokens, index, ignored_predicates
            )
        except XPathParsingError:
            break
        steps.append(step)

    if index < len(tokens):
        remainder = expression[tokens[index].position :].strip()
    else:
        remainder = ""

    return LocationPath(
        steps, remainder=remainder, ignored_predicates=ignored_predicates
    )


__all__ = (
    parse.__name__,  # type: ignore
    parse_predicate.__name__,
)
