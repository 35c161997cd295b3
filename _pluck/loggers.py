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
Diagnostic loggers. Queries report what they did and what they had to skip through
an object that implements :class:`_pluck.typing.Logger`. Nothing is reported by
default, :class:`ConsoleLogger` writes to a standard library logger.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Final, Optional


if TYPE_CHECKING:
    from _pluck.typing import LogContext, Logger


LOGGER_NAME: Final = "pluck"


class _Formatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        result = f"[pluck:{record.levelname.lower()}] {record.getMessage()}"
        context = getattr(record, "pluck_context", None)
        if context:
            result += f" {dict(context)!r}"
        return result


def _make_logging_logger() -> logging.Logger:
    result = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(h.formatter, _Formatter) for h in result.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(_Formatter())
        handler.setLevel(logging.DEBUG)
        result.addHandler(handler)
    if result.level == logging.NOTSET:
        result.setLevel(logging.DEBUG)
    return result


class NoopLogger:
    """A logger that discards everything. This is the default."""

    __slots__ = ()

    def debug(self, message: str, context: LogContext = None) -> None:
        pass

    def info(self, message: str, context: LogContext = None) -> None:
        pass

    def warning(self, message: str, context: LogContext = None) -> None:
        pass

    def error(self, message: str, context: LogContext = None) -> None:
        pass


class ConsoleLogger:
    """
    A verbose logger that passes messages to a :class:`logging.Logger`. Without an
    explicit one, the ``pluck`` logger is configured to write to :data:`sys.stderr`
    with lines like::

        [pluck:warning] invalid CSS selector {'selector': '[[['}

    :param logger: A standard library logger to write to instead.
    """

    __slots__ = ("_logger",)

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger: Final = _make_logging_logger() if logger is None else logger

    def _log(self, level: int, message: str, context: LogContext):
        self._logger.log(level, message, extra={"pluck_context": context})

    def debug(self, message: str, context: LogContext = None) -> None:
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, context: LogContext = None) -> None:
        self._log(logging.INFO, message, context)

    def warning(self, message: str, context: LogContext = None) -> None:
        self._log(logging.WARNING, message, context)

    def error(self, message: str, context: LogContext = None) -> None:
        self._log(logging.ERROR, message, context)


def resolve_logger(debug: bool = False, logger: Optional[Logger] = None) -> Logger:
    if logger is not None:
        return logger
    if debug:
        return ConsoleLogger()
    return NoopLogger()


__all__ = (
    ConsoleLogger.__name__,
    NoopLogger.__name__,
    resolve_logger.__name__,
)
