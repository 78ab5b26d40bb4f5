"""
Failover orchestrator.

Given an abstract model class ("gpt-4-class", "llama-70b-class", ...) walks
the configured chain of (provider, model) pairs until one returns a
successful non-streaming completion.

Per call:

    PENDING -> TRYING_ENTRY(i) -> SUCCESS      2xx with a JSON body
                               -> NEXT_ENTRY   skipped or failed terminally
    NEXT_ENTRY(i == last)      -> EXHAUSTED    raises AllProvidersFailed

An entry gets exactly the dispatcher's own retry budget; the orchestrator
never retries an entry itself. Entries whose provider has no credential are
skipped without touching the dispatcher.

Usage:
    orchestrator = FailoverOrchestrator.from_settings(dispatcher, registry, settings)
    tagged = await orchestrator.run("llama-70b-class", messages, {"max_tokens": 256})
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

import structlog

from provider_gateway.config import Settings
from provider_gateway.dispatch.dispatcher import RetryingDispatcher
from provider_gateway.exceptions import (
    AllProvidersFailed,
    ProviderConnectionError,
    ProviderResponseError,
    UnknownModelClass,
    UnknownProvider,
)
from provider_gateway.models.chat import ChatCompletion, ChatMessage
from provider_gateway.models.enums import FailoverState, StreamShape
from provider_gateway.models.failover import (
    FailoverAttemptRecord,
    FailoverChain,
    FailoverEntry,
    TaggedCompletion,
)
from provider_gateway.monitoring.metrics import failover_attempts_total, failover_exhausted_total
from provider_gateway.providers.registry import ProviderRegistry


logger = structlog.get_logger(__name__)

# Keys the orchestrator owns; callers cannot override them via extra params
_RESERVED_KEYS = ("model", "messages", "stream")


def _message_payload(messages: Sequence[Union[ChatMessage, Mapping[str, Any]]]) -> list[Any]:
    return [m.to_payload() if isinstance(m, ChatMessage) else dict(m) for m in messages]


class FailoverOrchestrator:
    """
    Walks failover chains through the retrying dispatcher.

    Attributes:
        dispatcher: Dispatcher used for every chain entry
        registry: Provider registry (credential checks, chat targets)
        chains: Model-class label -> FailoverChain
    """

    def __init__(
        self,
        dispatcher: RetryingDispatcher,
        registry: ProviderRegistry,
        chains: Mapping[str, FailoverChain],
    ):
        self.dispatcher = dispatcher
        self.registry = registry
        self.chains = dict(chains)

        logger.info(
            "FailoverOrchestrator initialized",
            model_classes=sorted(self.chains),
        )

    @classmethod
    def from_settings(
        cls,
        dispatcher: RetryingDispatcher,
        registry: ProviderRegistry,
        settings: Settings,
    ) -> "FailoverOrchestrator":
        chains = {
            label: FailoverChain.from_config(label, entries)
            for label, entries in settings.FAILOVER_CHAINS.items()
        }
        return cls(dispatcher, registry, chains)

    def chain_for(self, model_class: str) -> FailoverChain:
        chain = self.chains.get(model_class)
        if chain is None:
            raise UnknownModelClass(model_class)
        return chain

    async def run(
        self,
        model_class: str,
        messages: Sequence[Union[ChatMessage, Mapping[str, Any]]],
        extra_params: Optional[Mapping[str, Any]] = None,
    ) -> TaggedCompletion:
        """
        Return the first successful completion in the chain.

        Raises:
            UnknownModelClass: label has no chain
            AllProvidersFailed: every entry was skipped or failed
        """
        chain = self.chain_for(model_class)
        payload_messages = _message_payload(messages)
        extras = {k: v for k, v in (extra_params or {}).items() if k not in _RESERVED_KEYS}
        records: list[FailoverAttemptRecord] = []
        state = FailoverState.PENDING

        logger.info(
            "Starting failover",
            model_class=model_class,
            chain=[f"{e.provider}/{e.model}" for e in chain.entries],
            state=state.value,
        )

        for index, entry in enumerate(chain.entries):
            state = FailoverState.TRYING_ENTRY
            logger.info(
                f"Trying failover entry {index + 1}/{len(chain.entries)}",
                model_class=model_class,
                provider=entry.provider,
                model=entry.model,
                state=state.value,
            )

            tagged, record = await self._try_entry(entry, payload_messages, extras)
            if tagged is not None:
                state = FailoverState.SUCCESS
                failover_attempts_total.labels(
                    model_class=model_class, provider=entry.provider, outcome="success"
                ).inc()
                logger.info(
                    "Failover succeeded",
                    model_class=model_class,
                    provider=entry.provider,
                    model=entry.model,
                    entries_tried=index + 1,
                    state=state.value,
                )
                return tagged.model_copy(update={"attempts": tuple(records)})

            records.append(record)
            state = FailoverState.NEXT_ENTRY
            failover_attempts_total.labels(
                model_class=model_class, provider=entry.provider, outcome=record.outcome
            ).inc()
            logger.warning(
                "Failover entry failed",
                model_class=model_class,
                provider=entry.provider,
                model=entry.model,
                outcome=record.outcome,
                status_code=record.status_code,
                state=state.value,
            )

        state = FailoverState.EXHAUSTED
        failover_exhausted_total.labels(model_class=model_class).inc()
        logger.error(
            "All providers in failover chain failed",
            model_class=model_class,
            failures=[r.model_dump() for r in records],
            state=state.value,
        )
        raise AllProvidersFailed(model_class, chain.entries, records)

    async def _try_entry(
        self,
        entry: FailoverEntry,
        messages: list[Any],
        extras: dict[str, Any],
    ) -> tuple[Optional[TaggedCompletion], FailoverAttemptRecord]:
        def failed(outcome: str, **kwargs: Any) -> tuple[None, FailoverAttemptRecord]:
            return None, FailoverAttemptRecord(
                provider=entry.provider, model=entry.model, outcome=outcome, **kwargs
            )

        try:
            descriptor = self.registry.get(entry.provider)
        except UnknownProvider as e:
            return failed("unknown_provider", error=e.message)

        if not descriptor.is_configured():
            return failed("not_configured")

        target = descriptor.chat_target(entry.model)
        body = descriptor.shape_chat_body(
            {"model": entry.model, "messages": messages, **extras}, target
        )

        try:
            result = await self.dispatcher.dispatch(entry.provider, target.path, body)
        except ProviderConnectionError as e:
            return failed("transport_error", error=e.message)

        if not result.ok:
            return failed(
                "http_error",
                status_code=result.status_code,
                error=result.response.text[:500],
                attempts=result.attempt.attempts,
            )

        try:
            data = result.response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return failed(
                "invalid_body",
                status_code=result.status_code,
                error=str(e),
                attempts=result.attempt.attempts,
            )

        if target.shape is StreamShape.TOKEN_STREAM:
            try:
                data = ChatCompletion.from_payload(
                    entry.provider, entry.model, data, target.shape
                ).model_dump()
            except ProviderResponseError as e:
                return failed(
                    "invalid_body",
                    status_code=result.status_code,
                    error=e.message,
                    attempts=result.attempt.attempts,
                )
        elif not isinstance(data, dict):
            return failed(
                "invalid_body",
                status_code=result.status_code,
                error="Expected a JSON object",
                attempts=result.attempt.attempts,
            )

        record = FailoverAttemptRecord(
            provider=entry.provider,
            model=entry.model,
            outcome="success",
            status_code=result.status_code,
            attempts=result.attempt.attempts,
        )
        return TaggedCompletion(provider=entry.provider, model=entry.model, data=data), record
