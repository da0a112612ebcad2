"""Type aliases shared by the request parsing and API layers.

These aliases give names to the plain mappings and callables that flow
between the inbound request boundary, the parameter store and the error
handlers, so signatures read in domain terms.
"""

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, TypeAlias

# Context dictionary for error details and debugging information
# Values must be JSON-serializable for API responses
ErrorContext: TypeAlias = dict[str, Any]

# Converts the textual value of a parameter into an enumeration member
EnumParseFunction: TypeAlias = Callable[[str], Enum]

# Per-type enum parsing strategies supplied by the caller
EnumParsers: TypeAlias = Mapping[type[Enum], EnumParseFunction]
