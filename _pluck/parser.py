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

import re
from typing import TYPE_CHECKING, Final, NamedTuple, Optional, Union

from lxml import etree, html as lxml_html

from _pluck.exceptions import ParsingError
from _pluck.nodes import DocumentNode


if TYPE_CHECKING:
    from collections.abc import Callable


_looks_like_document: Final[Callable] = re.compile(
    r"\s*(?:<!--.*?-->\s*)*<(?:!doctype|html|head|body)\b", re.IGNORECASE | re.DOTALL
).match


class ParserOptions(NamedTuple):
    """
    The configuration options that define the HTML parser's behaviour.

    :param encoding: The encoding of input that is passed as :class:`bytes`.
    :param remove_blank_text: Drop text nodes that only contain whitespace between
                              elements.
    :param remove_comments: Ignore comments.
    :param remove_processing_instructions: Don't include processing instructions in
                                           the parsed tree.
    """

    encoding: Optional[str] = None
    remove_blank_text: bool = False
    remove_comments: bool = True
    remove_processing_instructions: bool = True


def _make_parser(options: ParserOptions) -> lxml_html.HTMLParser:
    return lxml_html.HTMLParser(
        no_network=True,
        remove_blank_text=options.remove_blank_text,
        remove_comments=options.remove_comments,
        remove_pis=options.remove_processing_instructions,
    )


def empty_document() -> DocumentNode:
    return DocumentNode(lxml_html.Element("div"), is_fragment=True)


def parse_html(
    source: Union[bytes, str], options: Optional[ParserOptions] = None
) -> DocumentNode:
    """
    Parses a complete HTML document or a fragment into a :class:`DocumentNode`.

    :param source: The markup as :class:`str` or encoded :class:`bytes`.
    :param options: A :class:`ParserOptions` instance to configure the parser.
    :raises ParsingError: If the input isn't a non-empty string or can't be parsed.
    """
    if options is None:
        options = ParserOptions()

    if isinstance(source, bytes):
        try:
            source = source.decode(options.encoding or "utf-8")
        except (LookupError, UnicodeDecodeError) as e:
            raise ParsingError(f"Couldn't decode the input: {e}") from e

    if not isinstance(source, str):
        raise ParsingError(f"Expected markup as string, got {type(source).__name__}.")
    if not source.strip():
        raise ParsingError("The input is empty.")

    parser = _make_parser(options)
    try:
        if _looks_like_document(source):
            return DocumentNode(
                lxml_html.document_fromstring(source, parser=parser),
                is_fragment=False,
            )
        return DocumentNode(
            lxml_html.fragment_fromstring(source, create_parent="div", parser=parser),
            is_fragment=True,
        )
    except (etree.LxmlError, ValueError) as e:
        raise ParsingError(str(e)) from e


__all__ = (
    empty_document.__name__,
    parse_html.__name__,
    ParserOptions.__name__,
)
