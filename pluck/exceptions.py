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

from _pluck.exceptions import (
    InvalidCodePath,
    InvalidSelector,
    ParsingError,
    PluckBaseException,
    XPathParsingError,
)


__all__ = (
    InvalidCodePath.__name__,
    InvalidSelector.__name__,
    ParsingError.__name__,
    PluckBaseException.__name__,
    XPathParsingError.__name__,
)
