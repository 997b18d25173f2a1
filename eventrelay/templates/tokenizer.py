"""
Splits template text into literal and placeholder segments.

A placeholder is ``{type:field}``: ``type`` is any run of characters other
than braces and colon, ``field`` any non-empty run of characters other than
braces. Everything else, including stray braces, is literal text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}:]+):([^{}]+)\}")


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Placeholder:
    type_id: str
    field: str

    @property
    def raw(self) -> str:
        return "{" + self.type_id + ":" + self.field + "}"

    @property
    def tag(self) -> str:
        return f"{self.type_id}:{self.field}"


Segment = Union[Literal, Placeholder]


def tokenize(text: str) -> tuple[Segment, ...]:
    """
    Tokenize ``text`` into segments.

    Joining every segment's text (``Placeholder.raw`` for placeholders)
    reproduces the input exactly.
    """
    segments: list[Segment] = []
    position = 0

    for match in PLACEHOLDER_PATTERN.finditer(text):
        if match.start() > position:
            segments.append(Literal(text[position:match.start()]))
        segments.append(Placeholder(match.group(1), match.group(2)))
        position = match.end()

    if position < len(text):
        segments.append(Literal(text[position:]))

    return tuple(segments)


def placeholders(text: str) -> list[Placeholder]:
    return [s for s in tokenize(text) if isinstance(s, Placeholder)]
