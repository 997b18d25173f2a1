"""
Relay - Request-scoped firing and fire-and-forget delivery.

A Relay wires the registries, the template store and a transport together.
Host code opens one request scope per request (or job), fires triggers
inside it and lets the scope flush the queued events when it closes.

Usage:
    >>> relay = Relay(triggers, options, store, HttpTransport(config))
    >>>
    >>> with relay.request_scope() as scope:
    ...     scope.fire("order_placed", {"order": 42})
    ...
    >>> # On exit the queue is drained and flushed in the background

Inside a scope, code without a reference to it can use ``fire_trigger``:
    >>> from eventrelay import fire_trigger
    >>> fire_trigger("course_completed", {"post": 12}, dedupe_id=12)
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from collections.abc import AsyncIterator, Iterator, Mapping, Sequence
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar
from typing import Any

from eventrelay.core.config import RelayConfig, get_config
from eventrelay.core.exceptions import TemplateError
from eventrelay.core.logger import get_logger
from eventrelay.core.types import (
    DeliveryResult,
    DeliveryStatus,
    QueuedEvent,
    Template,
)
from eventrelay.dispatch.assembler import EventAssembler, ProcessedSet
from eventrelay.dispatch.queue import EventQueue
from eventrelay.dispatch.transport import EventTransport, HttpTransport
from eventrelay.monitoring.logging import relay_context
from eventrelay.monitoring.prometheus import PrometheusMetrics
from eventrelay.options.registry import OptionGroup, OptionTypeRegistry, flatten_facts
from eventrelay.templates.engine import compile_template
from eventrelay.templates.global_tags import GlobalTagResolver
from eventrelay.templates.store import TemplateStore
from eventrelay.triggers.registry import TriggerRegistry

logger = get_logger(__name__)

_current_scope: ContextVar[RequestScope | None] = ContextVar("eventrelay_scope", default=None)


class RequestScope:
    """
    Queue and duplicate guard for one host request.

    Created by ``Relay.request_scope``; not shared across requests.
    """

    def __init__(self, relay: Relay):
        self.relay = relay
        self.request_id = uuid.uuid4().hex[:12]
        self.queue = EventQueue()
        self.processed = ProcessedSet()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def fire(
        self,
        trigger_id: str,
        identifiers: Mapping[str, Any] | None = None,
        overrides: Mapping[str, Mapping[str, Any]] | None = None,
        *,
        dedupe_id: Any = None,
    ) -> list[QueuedEvent]:
        """
        Assemble and queue the events of one trigger firing.

        Args:
            trigger_id: Trigger to fire
            identifiers: type_id -> identifier, e.g. ``{"order": 42}``
            overrides: type_id -> fields merged over the resolved data
            dedupe_id: When given, a second firing of the same trigger for
                the same id in this scope is ignored

        Returns:
            The queued events (empty when nothing was configured, every
            template was discarded, or the firing was a duplicate)
        """
        if self._closed:
            logger.warning(f"Request scope closed, ignoring trigger '{trigger_id}'")
            return []

        if dedupe_id is not None and not self.processed.check_and_add(trigger_id, dedupe_id):
            logger.debug(f"Trigger '{trigger_id}' already fired for {dedupe_id!r} in this request")
            return []

        context = {**relay_context.get({}), "trigger_id": trigger_id}
        object_id = self._object_id(trigger_id, identifiers, dedupe_id)
        if object_id is not None:
            context["object_id"] = str(object_id)

        token = relay_context.set(context)
        try:
            events = self.relay.assembler.assemble(trigger_id, identifiers, overrides)
        finally:
            relay_context.reset(token)

        for event in events:
            self.queue.push(event)
            if self.relay.metrics is not None:
                self.relay.metrics.event_queued(trigger_id)

        if events:
            logger.debug(f"Queued {len(events)} events for trigger '{trigger_id}'")
        return events

    def _object_id(self, trigger_id: str, identifiers: Any, dedupe_id: Any) -> Any:
        # The per-object template key when there is one, else the dedupe key
        trigger = self.relay.triggers.get(trigger_id)
        if trigger is not None and isinstance(identifiers, Mapping):
            object_id = self.relay.assembler.single_object_id(trigger, identifiers)
            if object_id is not None:
                return object_id
        return dedupe_id

    def _drain(self) -> list[QueuedEvent]:
        self._closed = True
        events = self.queue.drain_all()
        self.processed.clear()
        return events

    def close(self) -> asyncio.Future | threading.Thread | None:
        """
        Drain the queue and deliver it in the background.

        Returns the executor future or thread, or None when nothing was
        queued. Never blocks on the network.
        """
        events = self._drain()
        if not events:
            return None
        return self.relay.schedule_flush(events)

    async def shutdown(self) -> list[DeliveryResult]:
        """Drain the queue and wait for delivery."""
        events = self._drain()
        if not events:
            return []
        return await self.relay.flush(events)


class Relay:
    """
    Facade over the whole pipeline.

    Args:
        triggers: Finalized trigger registry
        options: Option type registry
        store: Configured templates
        transport: Delivery transport (default: HttpTransport of ``config``)
        config: Relay configuration (default: the global configuration)
        metrics: Prometheus metrics (default: created when ``config.metrics``)
    """

    def __init__(
        self,
        triggers: TriggerRegistry,
        options: OptionTypeRegistry,
        store: TemplateStore,
        transport: EventTransport | None = None,
        config: RelayConfig | None = None,
        metrics: PrometheusMetrics | None = None,
    ):
        self.config = config or get_config()
        if metrics is None and self.config.metrics:
            metrics = PrometheusMetrics()

        self.triggers = triggers
        self.options = options
        self.store = store
        self.metrics = metrics
        self.transport = transport or HttpTransport(self.config, metrics=metrics)
        self.assembler = EventAssembler(triggers, options, store, metrics)
        self._pending_flushes: set[asyncio.Future] = set()

        if not self.triggers.is_finalized:
            logger.warning("Relay created before TriggerRegistry.finalize(); global types are not baked in")

    @contextmanager
    def request_scope(self) -> Iterator[RequestScope]:
        """Open a scope; on exit its events are flushed in the background."""
        scope = RequestScope(self)
        scope_token = _current_scope.set(scope)
        context_token = relay_context.set({"request_id": scope.request_id})
        try:
            yield scope
        finally:
            relay_context.reset(context_token)
            _current_scope.reset(scope_token)
            scope.close()

    @asynccontextmanager
    async def async_request_scope(self) -> AsyncIterator[RequestScope]:
        """Open a scope; on exit delivery is awaited."""
        scope = RequestScope(self)
        scope_token = _current_scope.set(scope)
        context_token = relay_context.set({"request_id": scope.request_id})
        try:
            yield scope
        finally:
            relay_context.reset(context_token)
            _current_scope.reset(scope_token)
            await scope.shutdown()

    async def flush(self, events: Sequence[QueuedEvent]) -> list[DeliveryResult]:
        """Deliver events now. Never raises."""
        try:
            results = await self.transport.flush(events)
        except Exception as e:
            logger.exception(f"Transport flush failed: {e}")
            return [DeliveryResult(ev.event_id, DeliveryStatus.FAILED, error=str(e)) for ev in events]

        counts = {status: 0 for status in DeliveryStatus}
        for result in results:
            counts[result.status] += 1
        logger.info(
            f"Flushed {len(results)} events: {counts[DeliveryStatus.SENT]} sent, "
            f"{counts[DeliveryStatus.FAILED]} failed, {counts[DeliveryStatus.SKIPPED]} skipped"
        )
        return results

    def schedule_flush(self, events: Sequence[QueuedEvent]) -> asyncio.Future | threading.Thread:
        """
        Deliver events without blocking the caller.

        The flush always runs on a worker thread with its own event loop, so
        it survives the end of the caller's request, loop or process:

        - On a running event loop it goes to the loop's default executor,
          which ``asyncio.run`` and interpreter shutdown both wait for
        - With no loop it runs on a non-daemon thread, which the interpreter
          joins before exiting

        Each send is bounded by ``config.timeout_seconds``. An injected
        ``httpx.AsyncClient`` must therefore not be tied to the caller's loop.
        """
        events = list(events)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            future = loop.run_in_executor(None, self._flush_on_worker, events)
            self._pending_flushes.add(future)
            future.add_done_callback(self._handle_flush_done)
            return future

        thread = threading.Thread(
            target=self._flush_on_worker,
            args=(events,),
            name="eventrelay-flush",
            daemon=False,
        )
        thread.start()
        return thread

    def _flush_on_worker(self, events: list[QueuedEvent]) -> list[DeliveryResult]:
        return asyncio.run(self.flush(events))

    def _handle_flush_done(self, future: asyncio.Future) -> None:
        self._pending_flushes.discard(future)
        if future.cancelled():
            return
        # Retrieve the exception to prevent "Future exception was never retrieved"
        exc = future.exception()
        if exc is not None:
            logger.error(f"Background flush failed: {exc}")

    async def wait_for_pending(self) -> None:
        """Wait for background flushes started on this loop."""
        if self._pending_flushes:
            await asyncio.gather(*self._pending_flushes, return_exceptions=True)

    async def send_test_event(
        self,
        template: Template,
        facts: Mapping[str, Mapping[str, Any]] | None = None,
        *,
        source: str = "eventrelay",
        trigger_id: str = "test",
    ) -> DeliveryResult:
        """
        Resolve and deliver one template immediately, bypassing the queue.

        Raises:
            TemplateError: If the name resolved empty
            InvalidEndpointError: If no valid endpoint is configured
            DeliveryError: If the endpoint did not accept the event
        """
        flat = {type_id: flatten_facts(fields) for type_id, fields in (facts or {}).items()}
        compiled = compile_template(template).substitute(flat)
        compiled = GlobalTagResolver(self.options).resolve(compiled)

        if compiled.name_is_blank():
            msg = "Test event name resolved empty"
            raise TemplateError(msg)

        resolved = compiled.render()

        if template.scope is not None:
            trigger = self.triggers.get(template.scope.trigger_id)
            trigger_id = template.scope.trigger_id
            if trigger is not None and trigger.integration:
                source = trigger.integration

        event = QueuedEvent(
            name=resolved.name,
            values=resolved.values.prune_empty(),
            source_integration=source,
            trigger_id=trigger_id,
        )
        return await self.transport.send_test(event)

    def options_for(self, trigger_id: str, object_id: Any = None) -> list[OptionGroup]:
        """
        Declared options of every type a trigger uses, for authoring tools.

        Non-global types get previews from the object being edited; global
        types show their declared examples.
        """
        trigger = self.triggers.get(trigger_id)
        if trigger is None:
            return []

        groups = []
        for type_id in trigger.option_types:
            if self.options.is_global(type_id):
                groups.append(self.options.describe(type_id, None))
            else:
                groups.append(self.options.describe(type_id, object_id))
        return groups


def current_scope() -> RequestScope | None:
    return _current_scope.get()


def fire_trigger(
    trigger_id: str,
    identifiers: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Mapping[str, Any]] | None = None,
    *,
    dedupe_id: Any = None,
) -> list[QueuedEvent]:
    """Fire against the current request scope; a no-op outside one."""
    scope = _current_scope.get()
    if scope is None:
        logger.debug(f"No request scope active, trigger '{trigger_id}' not fired")
        return []
    return scope.fire(trigger_id, identifiers, overrides, dedupe_id=dedupe_id)
