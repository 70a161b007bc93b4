"""Placeholder converters for route patterns.

``{id}`` captures one path segment; ``{id:int}`` narrows what it accepts.
Captured values are always handed to handlers as strings.
"""

import re

# regex fragment for each supported converter; none accepts control characters
CONVERTERS: dict[str, str] = {
    "str": r"[^/\x00-\x1f\x7f]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "slug": r"[A-Za-z0-9_-]+",
    "path": r"[^\x00-\x1f\x7f]+",
}

PLACEHOLDER = re.compile(r"\{([^{}]*)\}")
NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

