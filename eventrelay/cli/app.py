"""
eventrelay CLI Application - Built with Click.

Authoring and diagnostics commands:
    eventrelay preview template.yaml          # Render a template against test data
    eventrelay validate templates.yaml        # Check a template store file
    eventrelay send-test --name "Ping"        # Blocking test send to the endpoint
    eventrelay tags                           # List available merge tags
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from eventrelay.core.config import RelayConfig
from eventrelay.core.exceptions import RelayError, TemplateError
from eventrelay.core.types import KeyValue, PairValues, QueuedEvent, Template
from eventrelay.dispatch.transport import HttpTransport
from eventrelay.templates.preview import DEFAULT_TEST_DATA, PreviewRenderer
from eventrelay.templates.store import YamlTemplateStore

console = Console()


class OrderedGroup(click.Group):
    """Click Group that lists commands in the order they were added."""

    def list_commands(self, ctx):
        return list(self.commands.keys())


@click.group(cls=OrderedGroup)
@click.version_option(version="1.0.0", prog_name="eventrelay")
def cli():
    """
    eventrelay - Relay domain events to an analytics endpoint.

    \b
    Authoring:
        preview          Render a template against test data
        validate         Check a template configuration file
        tags             List available merge tags
    \b
    Diagnostics:
        send-test        Send one test event and wait for the response
    """


# ============================================================================
# Helpers
# ============================================================================


def _load_test_data(data_file: str | None) -> dict[str, Any]:
    if data_file is None:
        return DEFAULT_TEST_DATA
    try:
        data = json.loads(Path(data_file).read_text())
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"{data_file} is not valid JSON: {e}", param_hint="--data") from e
    if not isinstance(data, dict):
        raise click.BadParameter(f"{data_file} must contain an object", param_hint="--data")
    return data


def _load_template(template_file: str) -> Template:
    try:
        data = yaml.safe_load(Path(template_file).read_text())
        return Template.from_dict(data)
    except (yaml.YAMLError, TemplateError) as e:
        console.print(f"[red]Error:[/red] {escape(template_file)}: {escape(str(e))}")
        sys.exit(1)


def _parse_pairs(values: tuple[str, ...]) -> PairValues:
    pairs = []
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"Expected key=value, got {item!r}", param_hint="--value")
        pairs.append(KeyValue(key.strip(), value))
    return PairValues(tuple(pairs))


# ============================================================================
# eventrelay preview
# ============================================================================


@cli.command()
@click.argument("template_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--data", "data_file", type=click.Path(exists=True, dir_okay=False), help="Test data JSON file")
@click.option("--keep-tags", is_flag=True, help="Keep unresolved tags verbatim instead of [type:field]")
def preview(template_file: str, data_file: str | None, keep_tags: bool):
    """Render TEMPLATE_FILE (YAML or JSON) against test data."""
    template = _load_template(template_file)
    renderer = PreviewRenderer(_load_test_data(data_file), show_placeholders=not keep_tags)
    rendered = renderer.render_template(template)

    table = Table(title="Preview")
    table.add_column("Field", style="cyan")
    table.add_column("Template")
    table.add_column("Preview", style="green")

    table.add_row("name", Text(template.name), Text(rendered.name))
    if isinstance(template.values, PairValues):
        for original, result in zip(template.values.pairs, rendered.values.pairs, strict=True):
            table.add_row(Text(original.key), Text(original.value), Text(result.value))
    else:
        table.add_row("value", Text(template.values.text), Text(rendered.values.text))

    console.print(table)

    validation = renderer.validate_template(template)
    for error in validation.errors:
        console.print(f"[yellow]Warning:[/yellow] {escape(error)}")


# ============================================================================
# eventrelay validate
# ============================================================================


@cli.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--data", "data_file", type=click.Path(exists=True, dir_okay=False), help="Test data JSON file")
def validate(config_file: str, data_file: str | None):
    """Check every template in CONFIG_FILE."""
    try:
        store = YamlTemplateStore(config_file)
    except TemplateError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    renderer = PreviewRenderer(_load_test_data(data_file))
    problems = list(store.errors)
    checked = 0

    for trigger_id in store.triggers():
        for template in [*store.get_global(trigger_id), *store.list_single(trigger_id)]:
            checked += 1
            where = trigger_id
            if template.scope is not None and template.scope.object_id is not None:
                where = f"{trigger_id}[{template.scope.object_id}]"
            problems.extend(f"{where}: {e}" for e in renderer.validate_template(template).errors)

    if problems:
        console.print(f"[red]{len(problems)} problem(s) in {escape(config_file)}[/red]")
        for problem in problems:
            console.print(f"  - {escape(problem)}")
        sys.exit(1)

    console.print(
        Panel.fit(f"[green]{checked} template(s) OK[/green]", title=Path(config_file).name)
    )


# ============================================================================
# eventrelay send-test
# ============================================================================


@cli.command(name="send-test")
@click.option("--endpoint", envvar="EVENTRELAY_ENDPOINT", help="Endpoint URL (default: $EVENTRELAY_ENDPOINT)")
@click.option("--name", required=True, help="Event name")
@click.option("--value", "values", multiple=True, help="Property as key=value (repeatable)")
@click.option("--source", default="eventrelay", show_default=True, help="Source integration header")
@click.option("--trigger", "trigger_id", default="test", show_default=True, help="Trigger header")
@click.option("--timeout", type=float, default=15.0, show_default=True, help="Timeout in seconds")
def send_test(
    endpoint: str | None,
    name: str,
    values: tuple[str, ...],
    source: str,
    trigger_id: str,
    timeout: float,
):
    """Send one event and wait for the endpoint's answer."""
    event = QueuedEvent(
        name=name,
        values=_parse_pairs(values),
        source_integration=source,
        trigger_id=trigger_id,
    )
    transport = HttpTransport(RelayConfig(endpoint=endpoint, test_timeout_seconds=timeout))

    try:
        result = asyncio.run(transport.send_test(event))
    except RelayError as e:
        console.print(f"[red]Test event failed:[/red] {escape(str(e))}")
        sys.exit(1)

    console.print(f"[green]Test event sent[/green] (status {result.status_code}, id {result.event_id})")


# ============================================================================
# eventrelay tags
# ============================================================================


@cli.command()
@click.option("--data", "data_file", type=click.Path(exists=True, dir_okay=False), help="Test data JSON file")
@click.option("--type", "type_id", default=None, help="Only show tags of this type")
def tags(data_file: str | None, type_id: str | None):
    """List the merge tags the test data can resolve."""
    renderer = PreviewRenderer(_load_test_data(data_file))
    available = [t for t in renderer.available_tags() if type_id is None or t.type_id == type_id]

    if not available:
        console.print("[yellow]No tags available[/yellow]")
        return

    table = Table(title="Available tags")
    table.add_column("Tag", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Example", style="green")
    table.add_column("Description")

    for tag in available:
        table.add_row(Text(tag.tag), tag.data_type, Text(tag.example), Text(tag.description))

    console.print(table)
