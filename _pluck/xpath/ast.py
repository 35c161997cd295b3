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

import operator
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator, Sequence
from textwrap import indent
from typing import TYPE_CHECKING, Any, NamedTuple, Optional

from _pluck.exceptions import XPathParsingError
from _pluck.nodes import DocumentNode, TagNode, TextNode
from _pluck.utils import normalize_space


if TYPE_CHECKING:
    from typing import Final

    from _pluck.typing import NodeType, QueryItem


AXIS_NAMES: Final = frozenset(
    (
        "ancestor",
        "attribute",
        "child",
        "descendant",
        "following",
        "following-sibling",
        "parent",
        "preceding",
        "preceding-sibling",
        "self",
    )
)


# helper


def nested_repr(obj: Any) -> str:  # pragma: no cover
    result = f"{obj.__class__.__name__}(\n"
    for name, value in ((x, getattr(obj, x)) for x in obj.__slots__):
        result += f"  {name}="
        if isinstance(value, Iterable) and not isinstance(value, str):
            result += (
                "[\n" + "\n".join(indent(repr(x), "    ") for x in value) + "\n]\n"
            )
        else:
            result += f"{value!r}\n"
    result += ")"
    return result


def _text_of(node: NodeType) -> str:
    return node.full_text.strip()


# structs


class EvaluationContext(NamedTuple):
    """
    Instances of this class are passed to predicates in order to pass contextual
    information.
    """

    node: NodeType
    """ The node that is evaluated. """
    position: int
    """
    The node's position within all nodes that passed a location step's node test and
    the preceding predicates, in order of the step's axis' direction. The first
    position is 1.
    """
    size: int
    """ The number of all nodes that passed the node test and preceding predicates. """


# base classes for nodes


class Node(ABC):
    __slots__: tuple[str, ...] = ()

    def __eq__(self, other):
        return type(self) is type(other) and all(
            getattr(self, x) == getattr(other, x) for x in self.__slots__
        )

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}("
            f"{', '.join(f'{x}={getattr(self, x)!r}' for x in self.__slots__)})"
        )


class EvaluationNode(Node):
    @abstractmethod
    def evaluate(self, context: EvaluationContext) -> bool:
        pass


class NodeTestNode(Node):
    @abstractmethod
    def evaluate(self, node: NodeType) -> bool:
        pass


# aggregators


class Axis(Node):
    __slots__ = ("generator", "name")

    def __init__(self, name: str):
        if name not in AXIS_NAMES:
            raise XPathParsingError(message="Invalid axis specifier.")
        self.generator: Final[Callable[[NodeType], Iterator[QueryItem]]] = getattr(
            self, name.replace("-", "_")
        )
        self.name: Final = name

    def __eq__(self, other):
        return isinstance(other, Axis) and self.name == other.name

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name})"

    def evaluate(self, node: NodeType) -> Iterator[QueryItem]:
        yield from self.generator(node)

    def ancestor(self, node: NodeType) -> Iterator[NodeType]:
        yield from node.iterate_ancestors()

    def attribute(self, node: NodeType) -> Iterator[QueryItem]:
        # candidates are resolved to the attributes' values after filtering
        if isinstance(node, TagNode):
            yield from (_AttributeCandidate(node, x) for x in node.attributes)

    def child(self, node: NodeType) -> Iterator[NodeType]:
        yield from node.iterate_children()

    def descendant(self, node: NodeType) -> Iterator[NodeType]:
        yield from node.iterate_descendants()

    def following(self, node: NodeType) -> Iterator[NodeType]:
        yield from node.iterate_following()

    def following_sibling(self, node: NodeType) -> Iterator[NodeType]:
        yield from node.iterate_following_siblings()

    def parent(self, node: NodeType) -> Iterator[NodeType]:
        if (parent := node.parent) is not None:
            yield parent

    def preceding(self, node: NodeType) -> Iterator[NodeType]:
        yield from node.iterate_preceding()

    def preceding_sibling(self, node: NodeType) -> Iterator[NodeType]:
        yield from node.iterate_preceding_siblings()

    def self(self, node: NodeType) -> Iterator[NodeType]:
        yield node


class _AttributeCandidate(NamedTuple):
    owner: TagNode
    name: str

    @property
    def value(self) -> str:
        value = self.owner.attribute(self.name)
        assert value is not None
        return value


class LocationPath(Node):
    """
    The result of parsing an expression. ``remainder`` holds the part of the
    expression that couldn't be parsed, it's empty when parsing succeeded.
    """

    __slots__ = ("ignored_predicates", "location_steps", "remainder")

    def __init__(
        self,
        location_steps: Iterable[LocationStep],
        remainder: str = "",
        ignored_predicates: Iterable[str] = (),
    ):
        self.location_steps: Final = tuple(location_steps)
        self.remainder: Final = remainder
        self.ignored_predicates: Final = tuple(ignored_predicates)

    def __repr__(self):
        return nested_repr(self)

    @property
    def is_complete(self) -> bool:
        return bool(self.location_steps) and not self.remainder

    def evaluate(self, node_set: Iterable[QueryItem]) -> list[QueryItem]:
        results: list[QueryItem] = list(node_set)
        for step in self.location_steps:
            results = step.evaluate(results)
        return results


class LocationStep(Node):
    __slots__ = ("axis", "node_test", "predicates")

    def __init__(
        self,
        axis: Axis,
        node_test: NodeTestNode,
        predicates: Sequence[EvaluationNode] = (),
    ):
        self.axis: Final = axis
        self.node_test: Final = node_test
        self.predicates: Final = tuple(predicates)

    def evaluate(self, node_set: Iterable[QueryItem]) -> list[QueryItem]:
        result: list[QueryItem] = []
        for node in node_set:
            if not isinstance(node, str):
                result.extend(self._evaluate(node))
        return result

    def _evaluate(self, node: NodeType) -> Sequence[QueryItem]:
        node_test = self.node_test

        candidates: list[Any] = [
            n for n in self.axis.evaluate(node) if node_test.evaluate(n)
        ]

        for predicate in self.predicates:
            size = len(candidates)
            next_candidates = []
            for position, candidate in enumerate(candidates, start=1):
                if predicate.evaluate(
                    EvaluationContext(node=candidate, position=position, size=size)
                ):
                    next_candidates.append(candidate)
            candidates = next_candidates

        return [
            x.value if isinstance(x, _AttributeCandidate) else x for x in candidates
        ]


# node tests


class AnyNameTest(NodeTestNode):
    """Matches all elements, or all attributes on the attribute axis."""

    def evaluate(self, node: Any) -> bool:
        return isinstance(node, (TagNode, _AttributeCandidate))


class NameMatchTest(NodeTestNode):
    __slots__ = ("local_name",)

    def __init__(self, local_name: str):
        self.local_name: Final = local_name.lower()

    def evaluate(self, node: Any) -> bool:
        if isinstance(node, TagNode):
            return node.local_name == self.local_name
        if isinstance(node, _AttributeCandidate):
            return node.name.lower() == self.local_name
        return False


class NodeTypeTest(NodeTestNode):
    __slots__ = ("type",)

    def __init__(self, type_: Optional[type]):
        self.type: Final = type_

    def evaluate(self, node: Any) -> bool:
        if self.type is None:
            return isinstance(node, (DocumentNode, TagNode, TextNode))
        return isinstance(node, self.type)


# predicates


OPERATORS: Final = {
    "<=": operator.le,
    "<": operator.lt,
    ">=": operator.ge,
    ">": operator.gt,
    "=": operator.eq,
    "!=": operator.ne,
    "and": operator.and_,
    "or": operator.or_,
}

STRING_TESTS: Final = {
    "contains": operator.contains,
    "ends-with": str.endswith,
    "starts-with": str.startswith,
}


class AttributeComparison(EvaluationNode):
    """
    An attribute's value compared to a string. A missing attribute is never equal
    and always unequal to a value.
    """

    __slots__ = ("name", "operator", "value")

    def __init__(self, name: str, operator: Callable, value: str):
        self.name: Final = name
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        node = context.node
        if not isinstance(node, TagNode):
            return False
        if (value := node.attribute(self.name)) is None:
            return self.operator is operator.ne
        return self.operator(value, self.value)


class AttributeStringTest(EvaluationNode):
    """``contains``, ``starts-with`` or ``ends-with`` on an attribute's value."""

    __slots__ = ("function", "name", "value")

    def __init__(self, function: Callable, name: str, value: str):
        self.function: Final = function
        self.name: Final = name
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        node = context.node
        if not isinstance(node, TagNode):
            return False
        return self.function(node.attribute(self.name) or "", self.value)


class BooleanOperator(EvaluationNode):
    __slots__ = ("left", "operator", "right")

    def __init__(
        self,
        operator: Callable,
        left: EvaluationNode,
        right: EvaluationNode,
    ):
        self.operator: Final = operator
        self.left: Final = left
        self.right: Final = right

    def evaluate(self, context: EvaluationContext) -> bool:
        return self.operator(
            self.left.evaluate(context), self.right.evaluate(context)
        )


class CountComparison(EvaluationNode):
    """Compares the number of descendant elements with a given name."""

    __slots__ = ("name", "operator", "value")

    def __init__(self, name: str, operator: Callable, value: float):
        self.name: Final = name
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        node = context.node
        if not isinstance(node, (DocumentNode, TagNode)):
            return False
        return self.operator(node.count_descendant_elements(self.name), self.value)


class HasAttribute(EvaluationNode):
    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name: Final = name

    def evaluate(self, context: EvaluationContext) -> bool:
        node = context.node
        return isinstance(node, TagNode) and node.attribute(self.name) is not None


class HasDescendant(EvaluationNode):
    """
    A bare name as predicate tests for an element with that name anywhere below the
    context node, not only among its children.
    """

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name: Final = name

    def evaluate(self, context: EvaluationContext) -> bool:
        node = context.node
        if not isinstance(node, (DocumentNode, TagNode)):
            return False
        return node.has_descendant_element(self.name)


class IsLast(EvaluationNode):
    def evaluate(self, context: EvaluationContext) -> bool:
        return context.position == context.size


class Not(EvaluationNode):
    __slots__ = ("predicate",)

    def __init__(self, predicate: EvaluationNode):
        self.predicate: Final = predicate

    def evaluate(self, context: EvaluationContext) -> bool:
        return not self.predicate.evaluate(context)


class PositionComparison(EvaluationNode):
    """Covers ``[n]`` as well as ``position() > n`` and its siblings."""

    __slots__ = ("operator", "value")

    def __init__(self, operator: Callable, value: float):
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        return self.operator(context.position, self.value)


class StringLengthComparison(EvaluationNode):
    __slots__ = ("operator", "value")

    def __init__(self, operator: Callable, value: float):
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        return self.operator(len(_text_of(context.node)), self.value)


class TextComparison(EvaluationNode):
    """
    A node's trimmed text content compared to a string. With ``normalize`` set,
    internal runs of whitespace are collapsed as ``normalize-space()`` does.
    """

    __slots__ = ("normalize", "operator", "value")

    def __init__(self, operator: Callable, value: str, normalize: bool = False):
        self.operator: Final = operator
        self.value: Final = value
        self.normalize: Final = normalize

    def evaluate(self, context: EvaluationContext) -> bool:
        text = _text_of(context.node)
        if self.normalize:
            text = normalize_space(text)
        return self.operator(text, self.value)


class TextStringTest(EvaluationNode):
    """``contains``, ``starts-with`` or ``ends-with`` on a node's trimmed text."""

    __slots__ = ("function", "value")

    def __init__(self, function: Callable, value: str):
        self.function: Final = function
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        return self.function(_text_of(context.node), self.value)


class SubstringComparison(EvaluationNode):
    """``substring(., start[, length])`` compared to a string, ``start`` is 1-based."""

    __slots__ = ("length", "operator", "start", "value")

    def __init__(
        self, start: int, length: Optional[int], operator: Callable, value: str
    ):
        self.start: Final = start
        self.length: Final = length
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        text = _text_of(context.node)
        start = max(self.start - 1, 0)
        if self.length is None:
            substring = text[start:]
        else:
            substring = text[start : start + max(self.length, 0)]
        return self.operator(substring, self.value)


class SubstringAfterComparison(EvaluationNode):
    __slots__ = ("delimiter", "operator", "value")

    def __init__(self, delimiter: str, operator: Callable, value: str):
        self.delimiter: Final = delimiter
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        _, found, after = _text_of(context.node).partition(self.delimiter)
        return self.operator(after if found else "", self.value)


class SubstringBeforeComparison(EvaluationNode):
    __slots__ = ("delimiter", "operator", "value")

    def __init__(self, delimiter: str, operator: Callable, value: str):
        self.delimiter: Final = delimiter
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        before, found, _ = _text_of(context.node).partition(self.delimiter)
        return self.operator(before if found else "", self.value)


class TranslateComparison(EvaluationNode):
    """
    ``translate(., from, to)`` compared to a string. Characters in ``from`` that
    have no counterpart in ``to`` are removed.
    """

    __slots__ = ("operator", "table", "value")

    def __init__(self, source: str, target: str, operator: Callable, value: str):
        table: dict[int, Optional[int]] = {}
        for i, character in enumerate(source):
            table.setdefault(
                ord(character), ord(target[i]) if i < len(target) else None
            )
        self.table: Final = table
        self.operator: Final = operator
        self.value: Final = value

    def evaluate(self, context: EvaluationContext) -> bool:
        return self.operator(_text_of(context.node).translate(self.table), self.value)


__all__ = (
    AnyNameTest.__name__,
    AttributeComparison.__name__,
    AttributeStringTest.__name__,
    Axis.__name__,
    BooleanOperator.__name__,
    CountComparison.__name__,
    EvaluationContext.__name__,
    EvaluationNode.__name__,
    HasAttribute.__name__,
    HasDescendant.__name__,
    IsLast.__name__,
    LocationPath.__name__,
    LocationStep.__name__,
    NameMatchTest.__name__,
    NodeTestNode.__name__,
    NodeTypeTest.__name__,
    Not.__name__,
    PositionComparison.__name__,
    StringLengthComparison.__name__,
    SubstringAfterComparison.__name__,
    SubstringBeforeComparison.__name__,
    SubstringComparison.__name__,
    TextComparison.__name__,
    TextStringTest.__name__,
    TranslateComparison.__name__,
)
