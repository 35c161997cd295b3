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

"""These are the specific pluck exceptions."""

from __future__ import annotations

from typing import Optional


class PluckBaseException(Exception):
    pass


class InvalidCodePath(PluckBaseException, RuntimeError):
    """Raised when a code path that is not expected to be executed is reached."""

    def __init__(self):  # pragma: no cover
        super().__init__(
            "An unintended path was taken through the code. Please report this bug."
        )


class InvalidSelector(PluckBaseException, ValueError):
    """
    Raised when a CSS selector is rejected by the translator or the tree provider.
    The public query methods catch it and return an empty selection.
    """

    def __init__(self, expression: str, reason: str):
        super().__init__(f"Invalid CSS selector `{expression}`: {reason}")
        self.expression = expression
        self.reason = reason


class ParsingError(PluckBaseException, ValueError):
    """Raised when an input can't be turned into a document."""

    pass


class XPathParsingError(PluckBaseException):
    """Raised when an XPath expression can't be parsed."""

    def __init__(
        self,
        expression: Optional[str] = None,
        position: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.expression = expression
        self.position = position
        self.message = message

    def __str__(self):
        expression = self.expression or ""
        position = self.position or 0

        expression_length = len(expression)
        snippet_end = min(position + 16, expression_length)

        if expression_length > snippet_end:
            snippet = f"`{expression[position:snippet_end]}…`"
        else:
            snippet = f"`{expression[position:snippet_end]}`"

        if len(snippet) > 2:
            return (
                f"XPath parsing error at character {position} ({snippet}): "
                f"{self.message}"
            )
        else:
            return f"XPath parsing error at character {position}: {self.message}"


__all__ = (
    InvalidCodePath.__name__,
    InvalidSelector.__name__,
    ParsingError.__name__,
    PluckBaseException.__name__,
    XPathParsingError.__name__,
)
