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
CSS selectors are translated to XPath expressions with :mod:`cssselect` and then
evaluated by :mod:`lxml` on the wrapped elements. This is the tree's native
matching, pluck's own XPath implementation isn't involved.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import lru_cache
from typing import TYPE_CHECKING, Final

from cssselect import HTMLTranslator, SelectorError
from lxml import etree

from _pluck.exceptions import InvalidSelector
from _pluck.nodes import DocumentNode, TagNode


if TYPE_CHECKING:
    from _pluck.typing import QueryItem


_css_translator: Final = HTMLTranslator()


@lru_cache(maxsize=64)
def _css_to_xpath(expression: str, prefix: str = "descendant::") -> str:
    try:
        return _css_translator.css_to_xpath(expression, prefix=prefix)
    except SelectorError as e:
        raise InvalidSelector(expression, str(e)) from e


def css_select(expression: str, node_set: Iterable[QueryItem]) -> list[TagNode]:
    """
    Returns all elements below the given elements or documents that match a CSS
    selector. Other items are skipped.

    :raises InvalidSelector: If the selector is invalid or unsupported.
    """
    result: list[TagNode] = []
    yielded_nodes: set[int] = set()

    for node in node_set:
        if isinstance(node, TagNode):
            elements = _xpath(node._etree_obj, _css_to_xpath(expression), expression)
        elif isinstance(node, DocumentNode):
            if node.is_fragment:
                xpath = _css_to_xpath(expression)
            else:
                xpath = _css_to_xpath(expression, prefix="descendant-or-self::")
            elements = _xpath(node._etree_obj, xpath, expression)
        else:
            continue

        for element in elements:
            tag_node = node.document._wrap_element(element)
            _id = id(tag_node)
            if _id not in yielded_nodes:
                yielded_nodes.add(_id)
                assert isinstance(tag_node, TagNode)
                result.append(tag_node)

    return result


def _xpath(
    element: etree._Element, xpath: str, expression: str
) -> list[etree._Element]:
    try:
        result = element.xpath(xpath)
    except etree.XPathError as e:
        raise InvalidSelector(expression, str(e)) from e
    assert isinstance(result, list)
    return [x for x in result if isinstance(x, etree._Element)]


__all__ = (
    _css_to_xpath.__name__,  # type: ignore
    css_select.__name__,
)
