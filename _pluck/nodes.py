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
The node model that queries are evaluated against. It's a thin layer of wrappers
around an :mod:`lxml.html` tree that provides the node kinds a query can produce:
the document, elements (:class:`TagNode`) and text nodes (:class:`TextNode`) which
are bound to an element's ``text`` or ``tail`` property.

Wrappers are cached per document, so each element and each text slot is
represented by exactly one object as long as the document exists. Query results can
therefore be deduplicated by identity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from html import escape
from typing import TYPE_CHECKING, Final, Optional, Union

from lxml import etree, html as lxml_html

from _pluck.exceptions import InvalidCodePath


if TYPE_CHECKING:
    from _pluck.typing import NodeType

    ParentNodeType = Union["DocumentNode", "TagNode"]


DATA, TAIL = 1, 2

RAW_TEXT_ELEMENTS: Final = frozenset(("script", "style"))

_string_value: Final = etree.XPath("string()")


def _is_tag(element: etree._Element) -> bool:
    # comments and processing instructions carry a factory function as tag
    return isinstance(element.tag, str)


def _serialize(element: etree._Element, with_tail: bool) -> str:
    return lxml_html.tostring(element, encoding="unicode", with_tail=with_tail)


def _serialize_inner(element: etree._Element) -> str:
    result = ""
    if element.text:
        if _is_tag(element) and element.tag.lower() in RAW_TEXT_ELEMENTS:
            result = element.text
        else:
            result = escape(element.text, quote=False)
    return result + "".join(_serialize(x, with_tail=True) for x in element)


# node classes


class NodeBase(ABC):
    __slots__ = ("_document",)

    def __init__(self, document: DocumentNode):
        self._document: Final = document

    @property
    def document(self) -> DocumentNode:
        """The document that the node belongs or belonged to."""
        return self._document

    @property
    @abstractmethod
    def attached(self) -> bool:
        """Whether the node is still part of its document's tree."""

    @abstractmethod
    def iterate_children(self) -> Iterator[NodeType]:
        pass

    @property
    @abstractmethod
    def full_text(self) -> str:
        """The concatenated contents of all text nodes within this node."""

    @property
    @abstractmethod
    def parent(self) -> Optional[ParentNodeType]:
        pass

    # traversal

    def iterate_ancestors(self) -> Iterator[ParentNodeType]:
        """Yields all ancestors, starting with the parent."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def iterate_descendants(self) -> Iterator[NodeType]:
        """Yields all descendants in document order."""
        for child in self.iterate_children():
            yield child
            yield from child.iterate_descendants()

    def iterate_following(self) -> Iterator[NodeType]:
        """
        Yields all nodes after this one in document order, excluding its
        descendants.
        """
        node: Optional[NodeType] = self  # type: ignore
        while node is not None:
            for sibling in node.iterate_following_siblings():
                yield sibling
                yield from sibling.iterate_descendants()
            node = node.parent

    def iterate_following_siblings(self) -> Iterator[NodeType]:
        parent = self.parent
        if parent is None:
            return
        found = False
        for child in parent.iterate_children():
            if found:
                yield child
            elif child is self:
                found = True

    def iterate_preceding(self) -> Iterator[NodeType]:
        """
        Yields all nodes before this one in document order, excluding its
        ancestors.
        """
        chain: list[NodeType] = [self]  # type: ignore
        chain.extend(
            x for x in self.iterate_ancestors() if not isinstance(x, DocumentNode)
        )
        for node in reversed(chain):
            for sibling in reversed(tuple(node.iterate_preceding_siblings())):
                yield sibling
                yield from sibling.iterate_descendants()

    def iterate_preceding_siblings(self) -> Iterator[NodeType]:
        """Yields the preceding siblings, the nearest first."""
        parent = self.parent
        if parent is None:
            return
        preceding = []
        for child in parent.iterate_children():
            if child is self:
                yield from reversed(preceding)
                return
            preceding.append(child)

    # queries

    def count_descendant_elements(self, name: str) -> int:
        name = name.lower()
        return sum(1 for x in self._iterate_descendant_elements() if x.tag == name)

    def has_descendant_element(self, name: str) -> bool:
        name = name.lower()
        return any(x.tag == name for x in self._iterate_descendant_elements())

    def _iterate_descendant_elements(self) -> Iterator[etree._Element]:
        return iter(())


class DocumentNode(NodeBase):
    """
    The root of a parsed tree. A document that was parsed from a complete HTML
    document has the ``<html>`` element as only child. A document that was parsed
    from a fragment has the fragment's top-level nodes as children, these are held
    in a container element that itself doesn't appear as node.
    """

    __slots__ = ("_etree_obj", "_wrappers", "is_fragment")

    def __init__(self, etree_obj: etree._Element, is_fragment: bool):
        super().__init__(self)
        self._etree_obj: Final = etree_obj
        self._wrappers: Final[dict[object, NodeBase]] = {}
        self.is_fragment: Final = is_fragment

    def __repr__(self):
        kind = "fragment" if self.is_fragment else "document"
        return f"<{self.__class__.__name__}({kind}) [{hex(id(self))}]>"

    @property
    def attached(self) -> bool:
        return True

    def iterate_children(self) -> Iterator[NodeType]:
        root = self.root
        if root is None:
            yield from _iterate_child_nodes(self._etree_obj, self)
        else:
            yield root

    @property
    def root(self) -> Optional[TagNode]:
        """The ``<html>`` element of a complete document."""
        if self.is_fragment:
            return None
        result = self._wrap_element(self._etree_obj)
        assert isinstance(result, TagNode)
        return result

    @property
    def full_text(self) -> str:
        return "".join(x.full_text for x in self.iterate_children())

    @property
    def parent(self) -> None:
        return None

    def inner_html(self) -> str:
        if self.is_fragment:
            return _serialize_inner(self._etree_obj)
        body = self._etree_obj.find("body")
        if body is None:
            return _serialize(self._etree_obj, with_tail=False)
        return _serialize_inner(body)

    def outer_html(self) -> str:
        root = self.root
        if root is None:
            return _serialize_inner(self._etree_obj)
        return root.outer_html()

    def remove(self):
        pass

    def _iterate_descendant_elements(self) -> Iterator[etree._Element]:
        if self.is_fragment:
            iterator = self._etree_obj.iterdescendants()
        else:
            iterator = self._etree_obj.iter()
        return (x for x in iterator if _is_tag(x))

    def _wrap_element(self, element: etree._Element) -> ParentNodeType:
        if self.is_fragment and element is self._etree_obj:
            return self
        key = id(element)
        result = self._wrappers.get(key)
        if result is None:
            result = self._wrappers[key] = TagNode(element, self)
        assert isinstance(result, TagNode)
        return result

    def _wrap_text(self, element: etree._Element, position: int) -> TextNode:
        key = (id(element), position)
        result = self._wrappers.get(key)
        if result is None:
            result = self._wrappers[key] = TextNode(element, position, self)
        assert isinstance(result, TextNode)
        return result

    def _is_attached_element(self, element: etree._Element) -> bool:
        top = element
        for top in element.iterancestors():  # noqa: B007
            pass
        return top is self._etree_obj


class TagNode(NodeBase):
    """The representation of an HTML element."""

    __slots__ = ("_etree_obj",)

    def __init__(self, etree_obj: etree._Element, document: DocumentNode):
        super().__init__(document)
        self._etree_obj: Final = etree_obj

    def __repr__(self):
        return (
            f"<{self.__class__.__name__}('{self.local_name}', "
            f"{dict(self.attributes)}) [{hex(id(self))}]>"
        )

    @property
    def attached(self) -> bool:
        return self._document._is_attached_element(self._etree_obj)

    @property
    def attributes(self) -> etree._Attrib:
        return self._etree_obj.attrib

    def attribute(self, name: str) -> Optional[str]:
        """Returns an attribute's value or :obj:`None` if it's not defined."""
        attributes = self._etree_obj.attrib
        result = attributes.get(name)
        if result is None:
            result = attributes.get(name.lower())
        return result

    def iterate_children(self) -> Iterator[NodeType]:
        yield from _iterate_child_nodes(self._etree_obj, self._document)

    @property
    def full_text(self) -> str:
        return str(_string_value(self._etree_obj))

    def inner_html(self) -> str:
        return _serialize_inner(self._etree_obj)

    @property
    def local_name(self) -> str:
        return self._etree_obj.tag.lower()

    def outer_html(self) -> str:
        return _serialize(self._etree_obj, with_tail=False)

    @property
    def parent(self) -> Optional[ParentNodeType]:
        etree_parent = self._etree_obj.getparent()
        if etree_parent is None:
            if self._etree_obj is self._document._etree_obj:
                return self._document
            return None
        return self._document._wrap_element(etree_parent)

    def remove(self):
        """
        Detaches the element from its tree. The text that follows it remains in the
        tree. Removing the ``<html>`` element or a detached one has no effect.
        """
        element = self._etree_obj
        if element.getparent() is None or not self.attached:
            return
        element.drop_tree()
        element.tail = None

    def _iterate_descendant_elements(self) -> Iterator[etree._Element]:
        return (x for x in self._etree_obj.iterdescendants() if _is_tag(x))


class TextNode(NodeBase):
    """
    A text node is bound to an element's ``text`` (:data:`DATA`) or ``tail``
    (:data:`TAIL`) property. It ceases to exist when that property is emptied.
    """

    __slots__ = ("_bound_to", "_position")

    def __init__(self, bound_to: etree._Element, position: int, document: DocumentNode):
        if position not in (DATA, TAIL):
            raise ValueError(position)
        super().__init__(document)
        self._bound_to: Final = bound_to
        self._position: Final = position

    def __repr__(self):
        return (
            f"<{self.__class__.__name__}(text={self.content!r}, "
            f"pos={self._position}) [{hex(id(self))}]>"
        )

    @property
    def attached(self) -> bool:
        if not self._exists:
            return False
        if self._position == DATA:
            return self._document._is_attached_element(self._bound_to)
        parent = self._bound_to.getparent()
        return parent is not None and self._document._is_attached_element(parent)

    @property
    def content(self) -> str:
        if self._position == DATA:
            return self._bound_to.text or ""
        elif self._position == TAIL:
            return self._bound_to.tail or ""
        raise InvalidCodePath

    @property
    def _exists(self) -> bool:
        return bool(self.content)

    def iterate_children(self) -> Iterator[NodeType]:
        return iter(())

    @property
    def full_text(self) -> str:
        return self.content

    @property
    def parent(self) -> Optional[ParentNodeType]:
        if not self._exists:
            return None
        if self._position == DATA:
            return self._document._wrap_element(self._bound_to)
        etree_parent = self._bound_to.getparent()
        if etree_parent is None:
            return None
        return self._document._wrap_element(etree_parent)

    def remove(self):
        if not self.attached:
            return
        if self._position == DATA:
            self._bound_to.text = None
        else:
            self._bound_to.tail = None


def _iterate_child_nodes(
    element: etree._Element, document: DocumentNode
) -> Iterator[NodeType]:
    if element.text:
        yield document._wrap_text(element, DATA)
    for child in element:
        if _is_tag(child):
            yield document._wrap_element(child)
        if child.tail:
            yield document._wrap_text(child, TAIL)


__all__ = (
    DocumentNode.__name__,
    NodeBase.__name__,
    TagNode.__name__,
    TextNode.__name__,
)
