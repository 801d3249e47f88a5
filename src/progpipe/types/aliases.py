"""Type aliases using modern PEP 695 syntax.

This module defines the small set of type aliases shared by the core,
the sample source and the application layer.
"""

from collections.abc import Callable, Iterable
from decimal import Decimal

# Wall-clock source returning epoch seconds (``time.time`` in production)
type Clock = Callable[[], float]

# Any text accepted as a goal or sample before parsing
type RawValue = str | int | float | Decimal

# Parsed numeric samples, in arrival order
type SampleStream = Iterable[Decimal]
