"""
Preview renderer for authoring tools.

Runs the same substitution engine as event delivery against test data, but
renders unresolved tags visibly (``[user:email]`` by default) so authors see
what is missing. Test data is flattened like live facts, so nested fields
are addressed as ``{order:billing.email}`` in both places.

Usage:
    >>> renderer = PreviewRenderer(DEFAULT_TEST_DATA)
    >>> renderer.render("Sale to {order:billing.email}")
    'Sale to jane@example.com'
    >>> renderer.render("Hello {user:nickname}")
    'Hello [user:nickname]'
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from eventrelay.core.types import Template
from eventrelay.options.registry import flatten_facts
from eventrelay.templates.engine import CompiledText, compile_template, format_scalar
from eventrelay.templates.tokenizer import Placeholder

# Anything in braces, used for validation only
_BRACED = re.compile(r"\{([^{}]+)\}")
_DATE_LIKE = re.compile(r"^\d{4}-\d{2}-\d{2}")

DESCRIPTIONS: dict[str, dict[str, str]] = {
    "user": {
        "user_email": "The user's email address",
        "display_name": "The user's display name",
        "first_name": "The user's first name",
        "last_name": "The user's last name",
        "user_login": "The user's login name",
    },
    "post": {
        "post_title": "The post title",
        "post_content": "The post content",
        "post_excerpt": "The post excerpt",
        "post_date": "The post publication date",
    },
    "product": {
        "name": "The product name",
        "price": "The product price",
        "sku": "The product SKU",
        "description": "The product description",
    },
    "order": {
        "order_total": "The order total amount",
        "order_date": "The order date",
        "billing.email": "The billing email address",
    },
}

DEFAULT_TEST_DATA: dict[str, dict[str, Any]] = {
    "user": {
        "ID": 1,
        "user_login": "admin",
        "user_email": "admin@example.com",
        "display_name": "John Doe",
        "first_name": "John",
        "last_name": "Doe",
        "user_registered": "2024-01-01 00:00:00",
        "roles": ["administrator"],
    },
    "post": {
        "ID": 123,
        "post_title": "Sample Blog Post",
        "post_excerpt": "This is a sample excerpt",
        "post_date": "2024-02-01 10:30:00",
        "post_status": "publish",
        "post_type": "post",
    },
    "product": {
        "ID": 456,
        "name": "Sample Product",
        "price": 29.99,
        "sku": "SAMPLE-001",
        "stock_quantity": 10,
        "dimensions": {"length": "10", "width": "5", "height": "3"},
    },
    "order": {
        "ID": 789,
        "order_number": "#789",
        "order_total": 59.98,
        "order_date": "2024-02-15 14:22:00",
        "status": "completed",
        "billing": {
            "first_name": "Jane",
            "last_name": "Smith",
            "email": "jane@example.com",
            "city": "Anytown",
        },
    },
}


@dataclass(frozen=True)
class TagInfo:
    """A tag available for authoring, derived from test data."""

    tag: str
    label: str
    type_id: str
    field: str
    example: str
    data_type: str
    description: str


@dataclass
class TagValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


def bracket_placeholder(placeholder: Placeholder) -> str:
    return f"[{placeholder.tag}]"


class PreviewRenderer:
    """
    Renders templates against test data for live preview.

    Args:
        test_data: type_id -> (possibly nested) field map
        show_placeholders: Render unresolved tags with ``placeholder_format``;
            when False they are kept verbatim like the delivery engine does
        placeholder_format: Formats an unresolved placeholder
    """

    def __init__(
        self,
        test_data: Mapping[str, Mapping[str, Any]] | None = None,
        show_placeholders: bool = True,
        placeholder_format: Callable[[Placeholder], str] = bracket_placeholder,
    ):
        self._test_data: dict[str, dict[str, Any]] = {
            k: dict(v) for k, v in (test_data if test_data is not None else DEFAULT_TEST_DATA).items()
        }
        self.show_placeholders = show_placeholders
        self.placeholder_format = placeholder_format
        self._facts = self._flatten()

    def _flatten(self) -> dict[str, dict[str, Any]]:
        return {
            type_id: flatten_facts(data)
            for type_id, data in self._test_data.items()
            if isinstance(data, Mapping)
        }

    @property
    def test_data(self) -> dict[str, dict[str, Any]]:
        return self._test_data

    def update_test_data(self, new_data: Mapping[str, Mapping[str, Any]]) -> None:
        """Replace the data of the given types, keeping the others."""
        self._test_data.update({k: dict(v) for k, v in new_data.items()})
        self._facts = self._flatten()

    def _missing(self) -> Callable[[Placeholder], str] | None:
        return self.placeholder_format if self.show_placeholders else None

    def render(self, text: str) -> str:
        return CompiledText.compile(text).substitute(self._facts).render(self._missing())

    def render_template(self, template: Template) -> Template:
        return compile_template(template).substitute(self._facts).render(self._missing())

    def extract_tags(self, text: str) -> list[str]:
        """Unique ``type:field`` bodies of every braced tag, in order."""
        tags: list[str] = []
        for match in _BRACED.finditer(text):
            if match.group(1) not in tags:
                tags.append(match.group(1))
        return tags

    def validate(self, text: str) -> TagValidation:
        """Check every braced tag in ``text`` against the test data."""
        errors = []
        tags = []

        for match in _BRACED.finditer(text):
            tag = match.group(1)
            tags.append(tag)

            if ":" not in tag:
                errors.append(f"Invalid tag format: {{{tag}}}. Expected format: {{type:field}}")
                continue

            type_id, field_name = tag.split(":", 1)
            if not type_id or not field_name:
                errors.append(f"Invalid tag format: {{{tag}}}. Missing type or field name")
                continue

            facts = self._facts.get(type_id)
            if facts is None:
                errors.append(f"Unknown type: {type_id} in tag {{{tag}}}")
                continue

            if facts.get(field_name) is None:
                errors.append(f"Field not found: {field_name} in {type_id} for tag {{{tag}}}")
            elif format_scalar(facts[field_name]) is None:
                errors.append(f"Field {field_name} in {type_id} is not a single value for tag {{{tag}}}")

        return TagValidation(valid=not errors, errors=errors, tags=tags)

    def validate_template(self, template: Template) -> TagValidation:
        results = [self.validate(text) for text in template.texts()]
        return TagValidation(
            valid=all(r.valid for r in results),
            errors=[e for r in results for e in r.errors],
            tags=[t for r in results for t in r.tags],
        )

    def available_tags(self) -> list[TagInfo]:
        """Every tag the test data can resolve, sorted by label."""
        tags = []
        for type_id, facts in self._facts.items():
            for field_name, value in facts.items():
                if isinstance(value, (list, tuple)):
                    if not value or format_scalar(value[0]) is None:
                        continue
                    example = ", ".join(str(v) for v in value)
                elif value is None:
                    example = ""
                else:
                    example = format_scalar(value)
                    if example is None:
                        continue

                tags.append(
                    TagInfo(
                        tag="{" + type_id + ":" + field_name + "}",
                        label=_label(type_id, field_name),
                        type_id=type_id,
                        field=field_name,
                        example=example,
                        data_type=_data_type(value),
                        description=_description(type_id, field_name),
                    )
                )

        return sorted(tags, key=lambda t: t.label)


def _label(type_id: str, field_name: str) -> str:
    parts = [part.replace("_", " ").strip().capitalize() for part in field_name.split(".")]
    return f"{type_id.capitalize()}: {' → '.join(parts)}"


def _data_type(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str) and _DATE_LIKE.match(value):
        return "date"
    return "string"


def _description(type_id: str, field_name: str) -> str:
    known = DESCRIPTIONS.get(type_id, {}).get(field_name)
    if known:
        return known
    last = field_name.split(".")[-1]
    return f"{type_id} {last.replace('_', ' ')}"
