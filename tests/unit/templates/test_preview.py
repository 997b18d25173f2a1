"""
Tests for the PreviewRenderer used by authoring tools.
"""

import pytest

from eventrelay.core.types import KeyValue, PairValues, Template
from eventrelay.templates.preview import DEFAULT_TEST_DATA, PreviewRenderer


@pytest.fixture
def renderer():
    return PreviewRenderer(DEFAULT_TEST_DATA)


class TestRender:
    """Tests for rendering text and templates."""

    def test_render_resolves_known_tags(self, renderer):
        assert renderer.render("Hello {user:display_name}") == "Hello John Doe"

    def test_nested_paths_use_flattened_keys(self, renderer):
        assert renderer.render("Sale to {order:billing.email}") == "Sale to jane@example.com"

    def test_unresolved_tags_are_bracketed(self, renderer):
        assert renderer.render("Hello {user:nickname}") == "Hello [user:nickname]"

    def test_keep_unresolved_tags_verbatim(self):
        renderer = PreviewRenderer(DEFAULT_TEST_DATA, show_placeholders=False)

        assert renderer.render("Hello {user:nickname}") == "Hello {user:nickname}"

    def test_custom_placeholder_format(self):
        renderer = PreviewRenderer(DEFAULT_TEST_DATA, placeholder_format=lambda p: f"<{p.field}>")

        assert renderer.render("{user:nickname}") == "<nickname>"

    def test_lists_are_not_inlined(self, renderer):
        assert renderer.render("{user:roles}") == "[user:roles]"

    def test_inserted_values_are_not_rescanned(self):
        renderer = PreviewRenderer({"a": {"b": "{c:d}"}, "c": {"d": "x"}})

        assert renderer.render("{a:b}") == "{c:d}"

    def test_render_template(self, renderer):
        template = Template(
            "Order {order:order_number}",
            PairValues((KeyValue("total", "{order:order_total}"), KeyValue("x", "{order:nope}"))),
        )

        rendered = renderer.render_template(template)

        assert rendered.name == "Order #789"
        assert rendered.values.as_dict() == {"total": "59.98", "x": "[order:nope]"}

    def test_update_test_data(self, renderer):
        renderer.update_test_data({"user": {"display_name": "Jane"}})

        assert renderer.render("{user:display_name}") == "Jane"
        assert renderer.render("{post:post_title}") == "Sample Blog Post"

    def test_default_data_is_not_mutated(self):
        renderer = PreviewRenderer()
        renderer.update_test_data({"user": {"display_name": "Jane"}})

        assert DEFAULT_TEST_DATA["user"]["display_name"] == "John Doe"


class TestValidate:
    """Tests for tag extraction and validation."""

    def test_extract_tags_unique_in_order(self, renderer):
        assert renderer.extract_tags("{b:x} {a:y} {b:x} {bad}") == ["b:x", "a:y", "bad"]

    def test_valid_text(self, renderer):
        result = renderer.validate("Hi {user:first_name} ({order:billing.email})")

        assert result.valid
        assert result.errors == []
        assert result.tags == ["user:first_name", "order:billing.email"]

    def test_invalid_format(self, renderer):
        result = renderer.validate("{nocolon}")

        assert not result.valid
        assert "Invalid tag format" in result.errors[0]

    def test_missing_type_or_field(self, renderer):
        result = renderer.validate("{:field}")

        assert len(result.errors) == 1
        assert "Missing type or field name" in result.errors[0]

    def test_unknown_type(self, renderer):
        result = renderer.validate("{course:title}")

        assert result.errors == ["Unknown type: course in tag {course:title}"]

    def test_unknown_field(self, renderer):
        result = renderer.validate("{user:nickname}")

        assert "Field not found: nickname" in result.errors[0]

    def test_non_scalar_field(self, renderer):
        result = renderer.validate("{user:roles}")

        assert "not a single value" in result.errors[0]

    def test_validate_template(self, renderer):
        template = Template("{user:first_name}", PairValues((KeyValue("k", "{nope:x}"),)))

        result = renderer.validate_template(template)

        assert not result.valid
        assert result.tags == ["user:first_name", "nope:x"]


class TestAvailableTags:
    """Tests for available_tags()."""

    def test_available_tags(self, renderer):
        tags = {t.tag: t for t in renderer.available_tags()}

        email = tags["{order:billing.email}"]
        assert email.label == "Order: Billing → Email"
        assert email.example == "jane@example.com"
        assert email.description == "The billing email address"

        assert tags["{product:price}"].data_type == "number"
        assert tags["{post:post_date}"].data_type == "date"
        assert tags["{user:roles}"].data_type == "array"
        assert tags["{user:roles}"].example == "administrator"
        assert tags["{product:sku}"].data_type == "string"

    def test_fallback_description(self, renderer):
        tags = {t.tag: t for t in renderer.available_tags()}

        assert tags["{order:billing.city}"].description == "order city"

    def test_sorted_by_label(self, renderer):
        labels = [t.label for t in renderer.available_tags()]

        assert labels == sorted(labels)
