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

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal, Optional, Protocol, TypedDict, Union


if TYPE_CHECKING:
    from typing import TypeAlias

    from _pluck.nodes import DocumentNode, TagNode, TextNode


ExtractionMode: TypeAlias = Literal["attr", "node", "text"]
LogContext: TypeAlias = Optional[Mapping[str, Any]]
NodeType: TypeAlias = Union["DocumentNode", "TagNode", "TextNode"]
QueryItem: TypeAlias = Union[NodeType, str]


class Logger(Protocol):
    """
    The interface that diagnostic loggers must implement. Each method receives a
    message and an optional mapping with structured details.
    """

    def debug(self, message: str, context: LogContext = None) -> None: ...

    def info(self, message: str, context: LogContext = None) -> None: ...

    def warning(self, message: str, context: LogContext = None) -> None: ...

    def error(self, message: str, context: LogContext = None) -> None: ...


class SelectFailure(TypedDict):
    ok: Literal[False]
    selector: str


class SelectSuccess(TypedDict):
    ok: Literal[True]
    value: str
    count: int


SelectResult: TypeAlias = Union[SelectFailure, SelectSuccess]


__all__ = (
    "ExtractionMode",
    "LogContext",
    Logger.__name__,
    "NodeType",
    "QueryItem",
    SelectFailure.__name__,
    "SelectResult",
    SelectSuccess.__name__,
)
