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
*pluck* evaluates a subset of XPath with its own implementation, tailored to the
extraction of data from HTML documents. It deviates from the `XPath 1.0 specs`_ in
these regards:

- Location paths are always evaluated relative to the context nodes. ``//p``
  selects the descendants of the context nodes, ``/p`` their children.
- Supported axes are ``ancestor``, ``attribute``, ``child``, ``descendant``,
  ``following``, ``following-sibling``, ``parent``, ``preceding``,
  ``preceding-sibling`` and ``self``. ``preceding-sibling`` yields the nearest
  sibling first, ``ancestor`` the parent first.
- Element names are matched case-insensitively.
- Attribute steps (``@href``, ``@*``) yield the attributes' values as strings and
  take no predicates.
- Predicates only support a fixed set of forms:
    - ``[n]``, ``[last()]``, ``[position() > n]`` (and the other comparison
      operators)
    - ``[@name]``, ``[@name='value']``, ``[@name!='value']``
    - ``[text()='value']``, ``[.='value']`` and ``!=``; text is compared with
      stripped surrounding whitespace
    - ``[normalize-space()='value']``
    - ``[contains(…, 'value')]``, ``[starts-with(…)]``, ``[ends-with(…)]`` with
      ``@name``, ``text()`` or ``.`` as subject
    - ``[substring(., start[, length])='value']``,
      ``[substring-before(., 'delimiter')='value']``,
      ``[substring-after(., 'delimiter')='value']``,
      ``[translate(., 'from', 'to')='value']``
    - ``[count(name) > n]``, ``[string-length() > n]``
    - ``[name]`` tests for a descendant element with that name
    - ``not(…)``, ``and``, ``or`` and parentheses
- Predicates of other forms are ignored.
- The union operator ``|`` combines the results of independent expressions, nodes
  are deduplicated, strings are not.

.. _XPath 1.0 specs: https://www.w3.org/TR/1999/REC-xpath-19991116/
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional

from _pluck.exceptions import XPathParsingError
from _pluck.loggers import NoopLogger
from _pluck.xpath.ast import EvaluationContext
from _pluck.xpath.parser import parse
from _pluck.xpath.tokenizer import COMPLEMENTING_TOKEN_TYPES, TokenType, tokenize


if TYPE_CHECKING:
    from _pluck.typing import Logger, QueryItem


def split_union(expression: str) -> list[str]:
    """
    Splits an expression at all ``|`` that are not enclosed in brackets, parentheses
    or string literals.
    """
    result = []
    start = depth = 0

    for token in tokenize(expression):
        if token.type in COMPLEMENTING_TOKEN_TYPES:
            depth += 1
        elif token.type in (TokenType.CLOSE_BRACKET, TokenType.CLOSE_PARENS):
            depth -= 1
        elif token.type is TokenType.PASEQ and depth == 0:
            result.append(expression[start : token.position].strip())
            start = token.position + 1

    result.append(expression[start:].strip())
    return [x for x in result if x]


def evaluate(
    expression: str,
    node_set: Iterable[QueryItem],
    logger: Optional[Logger] = None,
) -> list[QueryItem]:
    """
    Evaluates one expression without union operators against the given nodes.

    :raises XPathParsingError: If the expression can't be parsed completely.
    """
    if logger is None:
        logger = NoopLogger()

    path = parse(expression)

    for predicate in path.ignored_predicates:
        logger.debug(
            "ignoring unsupported xpath predicate",
            {"expression": expression, "predicate": predicate},
        )

    if not path.is_complete:
        raise XPathParsingError(
            expression=expression,
            position=len(expression.rstrip()) - len(path.remainder),
            message="The expression can't be parsed completely."
            if path.location_steps
            else "No location step found.",
        )

    return path.evaluate(node_set)


__all__ = (
    evaluate.__name__,
    parse.__name__,  # type: ignore
    split_union.__name__,
    EvaluationContext.__name__,
)
