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

import json
import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Any, Generic, NamedTuple, Optional, TypeVar, Union

import jmespath
from jmespath.exceptions import JMESPathError

from _pluck.css import css_select
from _pluck.exceptions import InvalidSelector, XPathParsingError
from _pluck.loggers import resolve_logger
from _pluck.nodes import DocumentNode, TagNode
from _pluck.pseudo import extract_value, split_pseudo_element
from _pluck.utils import compile_pattern, extract_regex
from _pluck.xpath import evaluate as evaluate_xpath, split_union


if TYPE_CHECKING:
    from typing import Final

    from _pluck.typing import Logger, NodeType, QueryItem, SelectResult


T = TypeVar("T")


class SelectorOptions(NamedTuple):
    """
    Options that are shared by a :class:`Selector` and all selectors that are derived
    from it.

    :param debug: Report diagnostics with a :class:`_pluck.loggers.ConsoleLogger`
                  when no ``logger`` is given.
    :param logger: An object that implements the :class:`_pluck.typing.Logger`
                   protocol.
    """

    debug: bool = False
    logger: Optional[Logger] = None


class MappedSelector(Generic[T]):
    """
    The result of :meth:`Selector.map` and :meth:`Selector.re`. It holds arbitrary
    values and can't be queried any further.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[T]):
        self._values: Final = tuple(values)

    def __iter__(self) -> Iterator[T]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"<{self.__class__.__name__}({list(self._values)!r})>"

    @property
    def count(self) -> int:
        return len(self._values)

    def get(self, default: Optional[T] = None) -> Optional[T]:
        if self._values:
            return self._values[0]
        return default

    def getall(self) -> list[T]:
        return list(self._values)

    @property
    def ok(self) -> bool:
        return len(self._values) > 0


class JsonSelector:
    """The result of a :meth:`Selector.jmespath` query, it can be queried further."""

    __slots__ = ("_logger", "_values")

    def __init__(self, values: Iterable[Any], logger: Logger):
        self._values: Final = tuple(values)
        self._logger: Final = logger

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self):
        return f"<{self.__class__.__name__}({list(self._values)!r})>"

    @property
    def count(self) -> int:
        return len(self._values)

    def get(self, default: Any = None) -> Any:
        if self._values:
            return self._values[0]
        return default

    def getall(self) -> list[Any]:
        return list(self._values)

    def jmespath(self, query: str) -> JsonSelector:
        """Applies another JMESPath query to all contained values."""
        results = []
        for value in self._values:
            try:
                result = jmespath.search(query, value)
            except JMESPathError as e:
                self._logger.warning(
                    "jmespath query failed", {"query": query, "error": str(e)}
                )
                continue
            if result is not None:
                results.append(result)
        return JsonSelector(results, self._logger)

    @property
    def ok(self) -> bool:
        return len(self._values) > 0


class Selector:
    """
    A selection of nodes or strings from a document. Selectors are immutable, all
    query and projection methods return new objects. No method raises because of an
    invalid query or payload, a failed query results in an empty selector and a
    diagnostic message that is passed to the configured logger.

    :param items: The selected nodes and strings.
    :param document: The document the items belong to.
    :param selector: The query that produced the selection.
    :param options: A :class:`SelectorOptions` instance.
    """

    __slots__ = ("_document", "_items", "_logger", "_options", "_selector")

    def __init__(
        self,
        items: Iterable[QueryItem],
        document: DocumentNode,
        selector: str = "",
        options: Optional[SelectorOptions] = None,
    ):
        if not isinstance(document, DocumentNode):
            raise TypeError("A selector must be bound to a document.")
        if options is None:
            options = SelectorOptions()

        self._items: Final[tuple[QueryItem, ...]] = tuple(items)
        self._document: Final = document
        self._selector: Final = selector
        self._options: Final = options
        self._logger: Final = resolve_logger(options.debug, options.logger)

        if selector:
            self._logger.debug(
                "selector matched", {"selector": selector, "matches": len(self._items)}
            )

    def __bool__(self) -> bool:
        return self.ok

    def __iter__(self) -> Iterator[Selector]:
        for item in self._items:
            yield self._derive((item,), self._selector)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self):
        return (
            f"<{self.__class__.__name__}(selector={self._selector!r}, "
            f"count={self.count}) [{hex(id(self))}]>"
        )

    def _derive(self, items: Iterable[QueryItem], selector: str) -> Selector:
        return Selector(items, self._document, selector, self._options)

    @property
    def _contexts(self) -> list[NodeType]:
        return [x for x in self._items if not isinstance(x, str) and x.attached]

    # feedback

    @property
    def count(self) -> int:
        """The number of selected items."""
        return len(self._items)

    @property
    def ok(self) -> bool:
        """Whether anything was selected."""
        return len(self._items) > 0

    def result(self) -> SelectResult:
        """
        A summary of the selection. Either ``{"ok": True, "value": …, "count": …}``
        or ``{"ok": False, "selector": …}``.
        """
        if self.ok:
            return {"ok": True, "value": self.get() or "", "count": self.count}
        return {"ok": False, "selector": self._selector}

    @property
    def selector(self) -> str:
        """The query that produced the selection."""
        return self._selector

    # values

    def get(self, default: Optional[str] = None) -> Optional[str]:
        """Returns the first value of :meth:`getall` or ``default``."""
        values = self.getall()
        if values:
            return values[0]
        return default

    def getall(self) -> list[str]:
        """
        Returns the values of all selected items: the markup of elements and
        documents, the stripped content of text nodes and strings as they are.
        Empty values are omitted.
        """
        result = []
        for item in self._items:
            if isinstance(item, str):
                result.append(item)
            elif value := extract_value(item, "node"):
                result.append(value)
        return result

    def attr(self, name: str) -> Optional[str]:
        """Returns an attribute's value of the first item if that is an element."""
        if self._items and isinstance(item := self._items[0], TagNode):
            return item.attribute(name)
        return None

    def html(self) -> Optional[str]:
        """
        Returns the inner markup of the first item if that is an element. For a
        complete document that is the body's content, for a fragment the markup of
        all its top-level nodes.
        """
        if self._items and isinstance(item := self._items[0], (DocumentNode, TagNode)):
            return item.inner_html()
        return None

    def outer_html(self) -> Optional[str]:
        """
        Returns the markup of the first item if that is an element. For a complete
        document that is the ``<html>`` element's markup, for a fragment the markup
        of all its top-level nodes.
        """
        if self._items and isinstance(item := self._items[0], (DocumentNode, TagNode)):
            return item.outer_html()
        return None

    def text(self, trim: bool = True) -> str:
        """
        Returns the text content of all items, joined with a space.

        :param trim: Strip the surrounding whitespace from each item's text.
        """
        pieces = []
        for item in self._items:
            text = item if isinstance(item, str) else item.full_text
            if trim:
                text = text.strip()
            if text:
                pieces.append(text)
        return " ".join(pieces)

    # queries

    def css(self, query: str) -> Selector:
        """
        Selects the elements below the selected elements that match a CSS selector.
        The pseudo-elements ``::text`` and ``::attr(name)`` select strings instead.
        """
        pseudo_element = split_pseudo_element(query)

        try:
            nodes = css_select(pseudo_element.query, self._contexts)
        except InvalidSelector as e:
            self._logger.warning(
                "invalid CSS selector",
                {"selector": query, "parsed": pseudo_element.query, "error": e.reason},
            )
            return self._derive((), query)

        return self._derive(
            _extract(nodes, pseudo_element.extract, pseudo_element.attribute), query
        )

    def xpath(self, query: str) -> Selector:
        """
        Evaluates an XPath expression relative to the selected nodes. The supported
        subset is described in :mod:`_pluck.xpath`. The pseudo-elements ``::text``
        and ``::attr(name)`` can be appended to each expression of a union.
        """
        branches = split_union(query)
        if not branches:
            self._logger.warning(
                "xpath could not be parsed completely",
                {"query": query, "remainder": query, "error": "Empty expression."},
            )
            return self._derive((), query)

        contexts = self._contexts
        results: list[QueryItem] = []
        yielded_nodes: set[int] = set()
        is_union = len(branches) > 1

        for branch in branches:
            pseudo_element = split_pseudo_element(branch)
            try:
                items = evaluate_xpath(pseudo_element.query, contexts, self._logger)
            except XPathParsingError as e:
                self._logger.warning(
                    "xpath could not be parsed completely",
                    {
                        "query": query,
                        "remainder": (e.expression or "")[e.position or 0 :],
                        "error": str(e),
                    },
                )
                return self._derive((), query)

            for item in _extract(
                items, pseudo_element.extract, pseudo_element.attribute
            ):
                if isinstance(item, str) or not is_union:
                    results.append(item)
                elif (_id := id(item)) not in yielded_nodes:
                    yielded_nodes.add(_id)
                    results.append(item)

        return self._derive(results, query)

    def or_(self, fallback: Selector) -> Selector:
        """Returns this selector if it selected anything, else ``fallback``."""
        if self.ok:
            return self
        return fallback

    # projections

    def map(self, function: Callable[[str], T]) -> MappedSelector[T]:
        """Applies a function to all values from :meth:`getall`."""
        return MappedSelector(function(x) for x in self.getall())

    def re(self, pattern: Union[str, re.Pattern]) -> MappedSelector[str]:
        """
        Applies a regular expression to all values. If it contains capturing groups,
        the groups' values are returned, otherwise the complete matches.
        """
        try:
            compiled = compile_pattern(pattern)
        except re.error as e:
            self._logger.warning(
                "invalid regular expression", {"pattern": str(pattern), "error": str(e)}
            )
            return MappedSelector(())
        return MappedSelector(extract_regex(compiled, self.getall()))

    def re_first(
        self, pattern: Union[str, re.Pattern], default: Optional[str] = None
    ) -> Optional[str]:
        return self.re(pattern).get(default)

    def jmespath(self, query: str) -> JsonSelector:
        """
        Decodes all values as JSON and applies a JMESPath query on each. Values that
        can't be decoded or queried are skipped.
        """
        results = []
        for value in self.getall():
            try:
                result = jmespath.search(query, json.loads(value))
            except (JMESPathError, ValueError) as e:
                self._logger.warning(
                    "jmespath failed to parse or query JSON",
                    {"query": query, "error": str(e), "value_preview": value[:100]},
                )
                continue
            if result is not None:
                results.append(result)
        return JsonSelector(results, self._logger)

    # positional access

    def as_list(self) -> list[Selector]:
        """A selector for each selected item in a new :class:`list`."""
        return list(self)

    def each(self, function: Callable[[Selector, int], Any]):
        """Calls a function with a selector for each item and the item's index."""
        for index, selector in enumerate(self):
            function(selector, index)

    def eq(self, index: int) -> Selector:
        """
        A selector with the item at the given index. Negative indexes count from the
        end, an index out of range results in an empty selector.
        """
        try:
            return self._derive((self._items[index],), self._selector)
        except IndexError:
            return self._derive((), self._selector)

    def first(self) -> Selector:
        return self.eq(0)

    def last(self) -> Selector:
        return self.eq(-1)

    # mutation

    def remove(self):
        """
        Detaches all selected elements and text nodes from the document. This
        affects all selectors that refer to the same document.
        """
        for item in self._items:
            if not isinstance(item, str):
                item.remove()


def _extract(
    items: Sequence[QueryItem], extract: str, attribute: Optional[str]
) -> Sequence[QueryItem]:
    if extract == "node":
        return items
    values = (extract_value(x, extract, attribute) for x in items)  # type: ignore
    return [x for x in values if x is not None]


__all__ = (
    JsonSelector.__name__,
    MappedSelector.__name__,
    Selector.__name__,
    SelectorOptions.__name__,
)
