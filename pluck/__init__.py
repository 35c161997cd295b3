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
*pluck* extracts data from HTML documents with CSS selectors, a subset of XPath,
regular expressions and JMESPath queries. Queries never raise because of invalid
expressions or unexpected markup, failures result in empty selections and are
reported to a configurable logger.

>>> from pluck import pluck
>>> page = pluck('<ul><li><a href="/a">A</a></li><li><a href="/b">B</a></li></ul>')
>>> page.css("a::attr(href)").getall()
['/a', '/b']
>>> page.xpath("//li[last()]/a/text()").get()
'B'
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

from _pluck.exceptions import ParsingError
from _pluck.loggers import ConsoleLogger, NoopLogger, resolve_logger
from _pluck.parser import empty_document, parse_html, ParserOptions
from _pluck.selector import JsonSelector, MappedSelector, Selector, SelectorOptions

if TYPE_CHECKING:
    from _pluck.typing import Logger, SelectResult  # noqa: F401


# api


def pluck(
    html: Union[str, bytes],
    *,
    debug: bool = False,
    logger: Optional[Logger] = None,
    parser_options: Optional[ParserOptions] = None,
) -> Selector:
    """
    Parses HTML markup and returns a :class:`Selector` for the resulting document.
    Input that begins with a doctype, an ``<html>``, ``<head>`` or ``<body>`` tag is
    parsed as complete document, anything else as fragment.

    Invalid input, e.g. an empty string or an object that isn't a string, results
    in an empty document and a warning.

    :param html: The markup to parse.
    :param debug: Report diagnostics to :data:`sys.stderr` when no ``logger`` is
                  given.
    :param logger: An object that implements the :class:`_pluck.typing.Logger`
                   protocol to report diagnostics to.
    :param parser_options: A :class:`ParserOptions` instance to configure the
                           parser.
    """
    options = SelectorOptions(debug=debug, logger=resolve_logger(debug, logger))

    try:
        document = parse_html(html, parser_options)
    except ParsingError as e:
        options.logger.warning(  # type: ignore
            "pluck called with invalid html input",
            {"type": type(html).__name__, "error": str(e)},
        )
        document = empty_document()

    return Selector((document,), document, options=options)


__all__ = (
    ConsoleLogger.__name__,
    JsonSelector.__name__,
    MappedSelector.__name__,
    NoopLogger.__name__,
    ParserOptions.__name__,
    pluck.__name__,
    Selector.__name__,
    SelectorOptions.__name__,
)
