"""
Template Substitution Engine.

Templates are compiled once into segments; substitution replaces only the
placeholder segments whose ``(type, field)`` has a scalar value in the
FactMap. Inserted values become literal segments, so text coming from data
(even text shaped like ``{other:field}``) is never treated as a placeholder
by a later pass.

Usage:
    >>> from eventrelay.templates import substitute
    >>>
    >>> resolved = substitute(template, {"order": {"id": 42, "total": "19.99"}})

Multi-pass usage (what the EventAssembler does):
    >>> compiled = compile_template(template).substitute(local_facts)
    >>> compiled = GlobalTagResolver(options).resolve(compiled)
    >>> resolved = compiled.render()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from eventrelay.core.types import Template
from eventrelay.templates.tokenizer import Literal, Placeholder, Segment, tokenize

MissingRenderer = Callable[[Placeholder], str]


def format_scalar(value: Any) -> str | None:
    """
    Text for a scalar fact value, or None for values that are never inlined.

    Strings, ints, floats, Decimals and bools are scalars; bools render as
    ``true``/``false``. None, lists, mappings and objects are not.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float, Decimal)):
        return str(value)
    return None


@dataclass(frozen=True)
class CompiledText:
    """One tokenized string of a template."""

    segments: tuple[Segment, ...]
    replaced: bool = False

    @classmethod
    def compile(cls, text: str) -> CompiledText:
        return cls(tokenize(text))

    def placeholders(self) -> list[Placeholder]:
        return [s for s in self.segments if isinstance(s, Placeholder)]

    def has_type(self, type_id: str) -> bool:
        return any(isinstance(s, Placeholder) and s.type_id == type_id for s in self.segments)

    def is_blank(self) -> bool:
        """True when nothing but whitespace and unresolved placeholders remains."""
        return all(isinstance(s, Placeholder) or not s.text.strip() for s in self.segments)

    def substitute(self, facts: Mapping[str, Mapping[str, Any]]) -> CompiledText:
        segments: list[Segment] = []
        replaced = self.replaced

        for segment in self.segments:
            if isinstance(segment, Placeholder):
                fields = facts.get(segment.type_id)
                if fields is not None and segment.field in fields:
                    text = format_scalar(fields[segment.field])
                    if text is not None:
                        segments.append(Literal(text))
                        replaced = True
                        continue
            segments.append(segment)

        return CompiledText(tuple(segments), replaced)

    def render(self, missing: MissingRenderer | None = None) -> str:
        parts = []
        for segment in self.segments:
            if isinstance(segment, Literal):
                parts.append(segment.text)
            elif missing is not None:
                parts.append(missing(segment))
            else:
                parts.append(segment.raw)

        text = "".join(parts)
        # Only strings that received a value are trimmed
        return text.strip() if self.replaced else text


@dataclass(frozen=True)
class CompiledTemplate:
    """
    A template whose name and values are tokenized.

    ``texts`` is aligned with ``template.texts()``: the name first, then every
    value string in order.
    """

    template: Template
    texts: tuple[CompiledText, ...]

    def substitute(self, facts: Mapping[str, Mapping[str, Any]]) -> CompiledTemplate:
        if not facts:
            return self
        return CompiledTemplate(self.template, tuple(t.substitute(facts) for t in self.texts))

    def has_type(self, type_id: str) -> bool:
        return any(t.has_type(type_id) for t in self.texts)

    def name_is_blank(self) -> bool:
        return self.texts[0].is_blank()

    def remaining(self) -> list[Placeholder]:
        """Placeholders still unresolved, in order of appearance."""
        return [p for t in self.texts for p in t.placeholders()]

    def render(self, missing: MissingRenderer | None = None) -> Template:
        rendered = iter([t.render(missing) for t in self.texts])
        return self.template.map_text(lambda _: next(rendered))


def compile_template(template: Template) -> CompiledTemplate:
    return CompiledTemplate(template, tuple(CompiledText.compile(t) for t in template.texts()))


def substitute(template: Template, facts: Mapping[str, Mapping[str, Any]]) -> Template:
    """
    Replace every placeholder resolvable from ``facts``.

    Unresolved placeholders are left verbatim. A template with nothing to
    replace is returned unchanged.
    """
    return compile_template(template).substitute(facts).render()
