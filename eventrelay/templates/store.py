"""
Template configuration stores.

A store holds the templates configured for each trigger: at most one
per-object ("single") template per ``(trigger_id, object_id)`` and any number
of global templates per trigger. Persisting that configuration is the host's
job; ``InMemoryTemplateStore`` and ``YamlTemplateStore`` cover tests,
development and file-based deployments.

YAML layout:

    global:
      order_placed:
        - name: "Order {order:id}"
          value:
            total: "{order:total}"
    single:
      course_completed:
        "12":
          name: "Completed {post:post_title}"
          value: "{user:user_email}"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from eventrelay.core.env import get_env
from eventrelay.core.exceptions import TemplateError
from eventrelay.core.logger import get_logger
from eventrelay.core.types import Template
from eventrelay.triggers.models import Trigger

logger = get_logger(__name__)


class TemplateStore(ABC):
    """
    Abstract source of configured templates.

    Implementations provide ``get_single``, ``get_global`` and
    ``list_single``; ``get_configured_templates`` applies the
    single-then-global fallback on top of them.
    """

    @abstractmethod
    def get_single(self, trigger_id: str, object_id: str) -> Template | None:
        """The template configured for one object, if any."""

    @abstractmethod
    def get_global(self, trigger_id: str) -> list[Template]:
        """Every global template of a trigger, in configuration order."""

    @abstractmethod
    def list_single(self, trigger_id: str) -> list[Template]:
        """Every per-object template of a trigger (authoring tools)."""

    def get_configured_templates(self, trigger: Trigger, object_id: Any = None) -> list[Template]:
        """
        Templates to fire for ``trigger``.

        The per-object template wins when the trigger supports single
        configuration and one is set for ``object_id``; otherwise all global
        templates are returned (when the trigger supports them). Every
        returned template carries its scope.
        """
        if object_id is not None and trigger.supports_single:
            single = self.get_single(trigger.id, str(object_id))
            if single is not None:
                return [single.with_scope(trigger.id, object_id)]

        if not trigger.supports_global:
            return []

        return [t.with_scope(trigger.id) for t in self.get_global(trigger.id)]


class InMemoryTemplateStore(TemplateStore):
    """
    In-memory template store for development and testing.

    Not suitable for production use as configuration is lost on restart.
    """

    def __init__(self) -> None:
        self._single: dict[str, dict[str, Template]] = {}
        self._global: dict[str, list[Template]] = {}

    def get_single(self, trigger_id: str, object_id: str) -> Template | None:
        return self._single.get(trigger_id, {}).get(str(object_id))

    def get_global(self, trigger_id: str) -> list[Template]:
        return list(self._global.get(trigger_id, []))

    def list_single(self, trigger_id: str) -> list[Template]:
        return [
            template.with_scope(trigger_id, object_id)
            for object_id, template in self._single.get(trigger_id, {}).items()
        ]

    def set_single(self, trigger_id: str, object_id: Any, template: Template) -> None:
        self._single.setdefault(trigger_id, {})[str(object_id)] = template

    def remove_single(self, trigger_id: str, object_id: Any) -> bool:
        """Remove a per-object template. Returns True if one was set."""
        return self._single.get(trigger_id, {}).pop(str(object_id), None) is not None

    def add_global(self, trigger_id: str, template: Template) -> None:
        self._global.setdefault(trigger_id, []).append(template)

    def clear(self) -> None:
        self._single.clear()
        self._global.clear()


class YamlTemplateStore(InMemoryTemplateStore):
    """
    Template store loaded from a YAML file.

    ``${VAR}`` references are substituted from the environment before
    parsing templates. In strict mode any malformed template raises
    ``TemplateError``; otherwise it is skipped and its message collected in
    ``errors``.

    Example:
        >>> store = YamlTemplateStore("templates.yaml")
        >>> store.get_global("order_placed")
        [Template(name='Order {order:id}', ...)]
    """

    def __init__(self, path: str | Path, strict: bool = False, substitute_env: bool = True):
        super().__init__()
        self.path = Path(path)
        self.strict = strict
        self.substitute_env = substitute_env
        self.errors: list[str] = []
        self.reload()

    def reload(self) -> None:
        """Re-read the file, replacing everything loaded before."""
        self.clear()
        self.errors = []

        if not self.path.exists():
            msg = f"Template file not found: {self.path}"
            raise FileNotFoundError(msg)

        with self.path.open() as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                msg = f"Invalid YAML in {self.path}: {e}"
                raise TemplateError(msg) from e

        if not isinstance(data, Mapping):
            msg = f"Template file {self.path} must contain a mapping"
            raise TemplateError(msg)

        if self.substitute_env:
            env = get_env()
            env.load()
            data = env.substitute_data(data)

        for trigger_id, templates in self._section(data, "global").items():
            if not isinstance(templates, list):
                templates = [templates]
            for index, raw in enumerate(templates):
                template = self._parse(raw, f"global.{trigger_id}[{index}]")
                if template is not None:
                    self.add_global(str(trigger_id), template)

        for trigger_id, objects in self._section(data, "single").items():
            if not isinstance(objects, Mapping):
                self._invalid(f"single.{trigger_id}: expected a mapping of object ids")
                continue
            for object_id, raw in objects.items():
                template = self._parse(raw, f"single.{trigger_id}.{object_id}")
                if template is not None:
                    self.set_single(str(trigger_id), object_id, template)

        logger.info(
            f"Loaded templates from {self.path}"
            + (f" ({len(self.errors)} skipped)" if self.errors else "")
        )

    def _section(self, data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
        section = data.get(key) or {}
        if not isinstance(section, Mapping):
            self._invalid(f"{key}: expected a mapping of trigger ids, got {type(section).__name__}")
            return {}
        return section

    def _parse(self, raw: Any, where: str) -> Template | None:
        try:
            return Template.from_dict(raw)
        except TemplateError as e:
            self._invalid(f"{where}: {e}")
            return None

    def _invalid(self, message: str) -> None:
        if self.strict:
            raise TemplateError(message)
        logger.warning(f"Skipping invalid template {message}")
        self.errors.append(message)

    def triggers(self) -> list[str]:
        """Trigger ids that have any configuration in the file."""
        return sorted(set(self._global) | set(self._single))
