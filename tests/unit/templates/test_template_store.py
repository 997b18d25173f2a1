"""
Tests for the template configuration stores.
"""

import pytest

from eventrelay.core.exceptions import TemplateError
from eventrelay.core.types import ScalarValue, Template, TemplateScope
from eventrelay.templates.store import InMemoryTemplateStore, YamlTemplateStore
from eventrelay.triggers.models import Trigger

SINGLE_AND_GLOBAL = Trigger(id="course_completed", supports_single=True, supports_global=True)
GLOBAL_ONLY = Trigger(id="order_placed", supports_single=False, supports_global=True)
SINGLE_ONLY = Trigger(id="post_viewed", supports_single=True, supports_global=False)


class TestInMemoryTemplateStore:
    """Tests for InMemoryTemplateStore and the fallback rules."""

    @pytest.fixture
    def store(self):
        store = InMemoryTemplateStore()
        store.add_global("course_completed", Template("Global A"))
        store.add_global("course_completed", Template("Global B"))
        store.set_single("course_completed", 12, Template("Course 12"))
        store.add_global("order_placed", Template("Order"))
        store.set_single("order_placed", 5, Template("Order 5"))
        store.add_global("post_viewed", Template("Viewed (global)"))
        store.set_single("post_viewed", 3, Template("Viewed 3"))
        return store

    def test_single_template_wins(self, store):
        templates = store.get_configured_templates(SINGLE_AND_GLOBAL, 12)

        assert [t.name for t in templates] == ["Course 12"]
        assert templates[0].scope == TemplateScope("course_completed", "12")

    def test_falls_back_to_all_globals(self, store):
        templates = store.get_configured_templates(SINGLE_AND_GLOBAL, 99)

        assert [t.name for t in templates] == ["Global A", "Global B"]
        assert all(t.scope == TemplateScope("course_completed") for t in templates)

    def test_no_object_uses_globals(self, store):
        assert len(store.get_configured_templates(SINGLE_AND_GLOBAL)) == 2

    def test_single_ignored_when_unsupported(self, store):
        templates = store.get_configured_templates(GLOBAL_ONLY, 5)

        assert [t.name for t in templates] == ["Order"]

    def test_global_ignored_when_unsupported(self, store):
        assert [t.name for t in store.get_configured_templates(SINGLE_ONLY, 3)] == ["Viewed 3"]
        assert store.get_configured_templates(SINGLE_ONLY, 4) == []

    def test_object_ids_are_compared_as_text(self, store):
        assert store.get_single("course_completed", "12").name == "Course 12"

    def test_list_single(self, store):
        store.set_single("course_completed", 13, Template("Course 13"))

        listed = store.list_single("course_completed")

        assert [(t.name, t.scope.object_id) for t in listed] == [("Course 12", "12"), ("Course 13", "13")]

    def test_remove_single(self, store):
        assert store.remove_single("course_completed", 12) is True
        assert store.remove_single("course_completed", 12) is False
        assert store.get_single("course_completed", "12") is None

    def test_get_global_returns_copy(self, store):
        store.get_global("order_placed").clear()

        assert len(store.get_global("order_placed")) == 1

    def test_clear(self, store):
        store.clear()

        assert store.get_configured_templates(SINGLE_AND_GLOBAL, 12) == []


class TestYamlTemplateStore:
    """Tests for YamlTemplateStore."""

    def test_load(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SITE_NAME", "Academy")
        path = tmp_path / "templates.yaml"
        path.write_text(
            "global:\n"
            "  order_placed:\n"
            "    - name: 'Order #{order:id}'\n"
            "      value:\n"
            "        - key: amount\n"
            "          value: '{order:total}'\n"
            "    - name: '${SITE_NAME} sale'\n"
            "      value: {total: '{order:total}'}\n"
            "single:\n"
            "  course_completed:\n"
            "    12:\n"
            "      name: Completed {post:post_title}\n"
            "      value: '{user:user_email}'\n"
        )

        store = YamlTemplateStore(path)

        names = [t.name for t in store.get_global("order_placed")]
        assert names == ["Order #{order:id}", "Academy sale"]
        assert store.get_global("order_placed")[1].values.as_dict() == {"total": "{order:total}"}
        assert store.get_single("course_completed", "12").values == ScalarValue("{user:user_email}")
        assert store.triggers() == ["course_completed", "order_placed"]
        assert store.errors == []

    def test_invalid_templates_are_skipped(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text(
            "global:\n"
            "  order_placed:\n"
            "    - name: Good\n"
            "    - just a string\n"
            "single:\n"
            "  course_completed: not-a-mapping\n"
        )

        store = YamlTemplateStore(path)

        assert [t.name for t in store.get_global("order_placed")] == ["Good"]
        assert len(store.errors) == 2
        assert store.errors[0].startswith("global.order_placed[1]")

    def test_strict_mode_raises(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text("global:\n  order_placed:\n    - 42\n")

        with pytest.raises(TemplateError, match=r"global.order_placed\[0\]"):
            YamlTemplateStore(path, strict=True)

    @pytest.mark.parametrize(
        "content",
        ["global:\n  - name: Order\n", "single: just text\n"],
        ids=["global-list", "single-text"],
    )
    def test_section_that_is_not_a_mapping_is_skipped(self, tmp_path, content):
        path = tmp_path / "templates.yaml"
        path.write_text(content)

        store = YamlTemplateStore(path)

        assert store.triggers() == []
        assert len(store.errors) == 1
        assert "expected a mapping of trigger ids" in store.errors[0]

    def test_section_that_is_not_a_mapping_raises_in_strict_mode(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text("global:\n  - name: Order\n")

        with pytest.raises(TemplateError, match="global: expected a mapping of trigger ids, got list"):
            YamlTemplateStore(path, strict=True)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text("global: [unclosed\n")

        with pytest.raises(TemplateError, match="Invalid YAML"):
            YamlTemplateStore(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            YamlTemplateStore(tmp_path / "missing.yaml")

    def test_reload(self, tmp_path):
        path = tmp_path / "templates.yaml"
        path.write_text("global:\n  order_placed:\n    - name: First\n")
        store = YamlTemplateStore(path)

        path.write_text("global:\n  order_placed:\n    - name: Second\n")
        store.reload()

        assert [t.name for t in store.get_global("order_placed")] == ["Second"]
