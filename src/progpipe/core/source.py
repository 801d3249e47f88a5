"""Sample source: turn raw input lines into numeric samples.

This module adapts a text stream (normally standard input) into the
sequence of ``Decimal`` samples consumed by the estimation loop, with
optional extraction of a single whitespace-delimited column.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from decimal import Decimal, InvalidOperation

from progpipe.core.exceptions import InvalidGoalError, InvalidSampleError
from progpipe.types.aliases import RawValue

logger = logging.getLogger(__name__)


def parse_number(text: RawValue, *, what: str = "sample") -> Decimal:
    """Parse a finite real number from text.

    Args:
        text: Raw value as read from input or the command line
        what: Name of the value for error messages

    Returns:
        Parsed finite Decimal

    Raises:
        InvalidSampleError: If the value is empty, not numeric, NaN or infinite

    Examples:
        >>> parse_number(" 42\\n")
        Decimal('42')
        >>> parse_number("1e3")
        Decimal('1E+3')
    """
    if isinstance(text, Decimal):
        value = text
        raw = str(text)
    else:
        raw = str(text).strip()
        if not raw:
            msg = f"ERROR: {what} has no value."
            raise InvalidSampleError(msg, raw_value=raw)
        try:
            value = Decimal(raw)
        except InvalidOperation as e:
            msg = f"ERROR: {what} {raw!r} is not a number"
            raise InvalidSampleError(msg, raw_value=raw) from e

    if not value.is_finite():
        msg = f"ERROR: {what} {raw!r} is not a finite number"
        raise InvalidSampleError(msg, raw_value=raw)

    return value


def parse_goal(text: RawValue | None) -> Decimal:
    """Parse the goal value supplied at startup.

    Raises:
        InvalidGoalError: If the goal is missing or not a finite number

    Examples:
        >>> parse_goal("100")
        Decimal('100')
    """
    if text is None or (isinstance(text, str) and not text.strip()):
        raise InvalidGoalError("ERROR: Goal is unset")

    try:
        return parse_number(text, what="goal")
    except InvalidSampleError as e:
        raise InvalidGoalError(str(e), raw_value=e.raw_value) from e


def select_field(line: str, field: int) -> str:
    """Extract a 1-based whitespace-delimited field from a line.

    Args:
        line: Raw input line
        field: 1-based column index

    Returns:
        The selected field text

    Raises:
        ValueError: If field is less than 1
        InvalidSampleError: If the line has fewer than ``field`` columns

    Examples:
        >>> select_field("copy\\t48\\t101", 2)
        '48'
    """
    if field < 1:
        msg = f"ERROR: field must be 1 or larger, got: {field}"
        raise ValueError(msg)

    columns = line.split()
    if field > len(columns):
        msg = f"ERROR: Field {field} has no value."
        raise InvalidSampleError(msg, raw_value=line.rstrip("\n"))

    return columns[field - 1]


def read_samples(lines: Iterable[str], *, field: int | None = None) -> Iterator[Decimal]:
    """Lazily parse numeric samples from an iterable of text lines.

    Each line yields exactly one sample. Reading blocks on the underlying
    iterable, so a stalled producer stalls the consumer.

    Args:
        lines: Text lines, e.g. ``sys.stdin``
        field: Optional 1-based column to extract from each line

    Yields:
        One Decimal per input line

    Raises:
        ValueError: If field is less than 1
        InvalidSampleError: On the first line that cannot be parsed
    """
    if field is not None and field < 1:
        msg = f"ERROR: field must be 1 or larger, got: {field}"
        raise ValueError(msg)

    for line_number, line in enumerate(lines, start=1):
        try:
            text = select_field(line, field) if field is not None else line
            value = parse_number(text)
        except InvalidSampleError as e:
            logger.error(
                "Unparseable input sample",
                extra={"line_number": line_number, "raw_value": e.raw_value},
            )
            raise InvalidSampleError(
                f"{e} (input line {line_number})",
                raw_value=e.raw_value,
                line_number=line_number,
            ) from e

        yield value
