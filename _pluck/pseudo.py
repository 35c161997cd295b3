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
The pseudo-elements ``::text`` and ``::attr(name)`` can be appended to CSS
selectors and XPath expressions alike. They determine which value is extracted
from each matched node.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, Final, NamedTuple, Optional

from _pluck.exceptions import InvalidCodePath
from _pluck.nodes import DocumentNode, TagNode, TextNode


if TYPE_CHECKING:
    from _pluck.typing import ExtractionMode, QueryItem


_match_text: Final = re.compile(r"(?P<query>.+?)::text\s*\Z", re.DOTALL).match
_match_attr: Final = re.compile(
    r"(?P<query>.+?)::attr\((?P<attribute>[^)]+)\)\s*\Z", re.DOTALL
).match


class PseudoElement(NamedTuple):
    query: str
    """ The expression without the pseudo-element. """
    extract: ExtractionMode
    attribute: Optional[str] = None


@lru_cache(64)
def split_pseudo_element(expression: str) -> PseudoElement:
    expression = expression.strip()

    if (match := _match_text(expression)) is not None:
        return PseudoElement(match.group("query").strip(), "text")

    if (match := _match_attr(expression)) is not None:
        return PseudoElement(
            match.group("query").strip(), "attr", match.group("attribute").strip()
        )

    return PseudoElement(expression, "node")


def extract_value(
    item: QueryItem, extract: ExtractionMode, attribute: Optional[str] = None
) -> Optional[str]:
    """
    Extracts a string from a query result. :obj:`None` is returned when there's
    nothing to extract.
    """
    if isinstance(item, str):
        return item

    if extract == "text":
        return item.full_text.strip() or None

    if extract == "attr":
        if isinstance(item, TagNode) and attribute is not None:
            return item.attribute(attribute)
        return None

    if isinstance(item, TagNode):
        return item.outer_html()
    if isinstance(item, TextNode):
        return item.content.strip()
    if isinstance(item, DocumentNode):
        return item.outer_html()

    raise InvalidCodePath


__all__ = (
    extract_value.__name__,
    split_pseudo_element.__name__,  # type: ignore
    PseudoElement.__name__,
)
