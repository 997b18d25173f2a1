"""
eventrelay.templates - Placeholder substitution

Components:
    - tokenize / compile_template: Split templates into literal and
      placeholder segments once
    - substitute: Type-local pass against a FactMap
    - resolve_global / GlobalTagResolver: Second pass for global types
    - PreviewRenderer: Same engine against test data, for authoring tools

Stores:
    - TemplateStore: Configured templates per trigger
    - InMemoryTemplateStore: For testing
    - YamlTemplateStore: File-based configuration
"""

from eventrelay.templates.engine import (
    CompiledTemplate,
    CompiledText,
    compile_template,
    format_scalar,
    substitute,
)
from eventrelay.templates.global_tags import GlobalTagResolver, resolve_global
from eventrelay.templates.preview import (
    DEFAULT_TEST_DATA,
    PreviewRenderer,
    TagInfo,
    TagValidation,
)
from eventrelay.templates.store import InMemoryTemplateStore, TemplateStore, YamlTemplateStore
from eventrelay.templates.tokenizer import Literal, Placeholder, placeholders, tokenize

__all__ = [
    "DEFAULT_TEST_DATA",
    "CompiledTemplate",
    "CompiledText",
    "GlobalTagResolver",
    "InMemoryTemplateStore",
    "Literal",
    "Placeholder",
    "PreviewRenderer",
    "TagInfo",
    "TagValidation",
    "TemplateStore",
    "YamlTemplateStore",
    "compile_template",
    "format_scalar",
    "placeholders",
    "resolve_global",
    "substitute",
    "tokenize",
]
