# SPDX-License-Identifier: Apache-2.0
"""Dispatcher that fans a selection action out over the selected rows."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from selection_actions.interpolation import (
    InterpolationResult,
    VariableStateMap,
    interpolate_selection_batch,
    interpolate_selection_individual,
    json_dumps,
)
from selection_actions.metrics import (
    ACTION_EXECUTIONS,
    INTERPOLATION_ERRORS,
    ITEM_RESULTS,
    WEBHOOK_LATENCY,
    WEBHOOK_REQUESTS,
)

from .base import Action, ActionFailure, EventAction, ExecutionResult, ItemResult, WebhookAction
from .events import EventBus, LocalEvent
from .payload import ReplaceVariables, build_bulk_payload, build_payload, substitute_selection_variables
from .rate_limit import RateLimiter
from .status import ItemActionStatus, SetActionStatus, discard_status
from .webhook import Transport, WebhookTransport, build_webhook_headers, check_response

log = logging.getLogger(__name__)

Selection = Mapping[Any, Mapping[str, Any]]


class PartialFailureError(Exception):
    """Some rows of an individual webhook dispatch failed."""


def _failure(action: Action, item_id: Any, error: Exception) -> ActionFailure:
    return ActionFailure(item_id=item_id, action_name=action.name, message=str(error), timestamp=time.time())


def _all_loading(entries) -> Dict[Any, ItemActionStatus]:
    return {item_id: ItemActionStatus(loading=True) for item_id, _ in entries}


class ActionDispatcher:
    """Runs event and webhook actions against a selection.

    Every failure is turned into status updates and the returned
    ``ExecutionResult``; ``execute`` does not raise for transport or handler
    errors.
    """

    def __init__(
        self,
        *,
        transport: Optional[Transport] = None,
        events: Optional[EventBus] = None,
        set_action_status: Optional[SetActionStatus] = None,
    ):
        self._owns_transport = transport is None
        self.transport: Transport = transport or WebhookTransport()
        self.events = events or EventBus()
        self.set_action_status = set_action_status or discard_status

    async def close(self) -> None:
        if self._owns_transport and isinstance(self.transport, WebhookTransport):
            await self.transport.close()

    def _interpolated(self, action: Action, result: InterpolationResult) -> str:
        if result.errors:
            INTERPOLATION_ERRORS.inc(len(result.errors))
            for error in result.errors:
                log.warning("action %s: %s", action.name, error)
        return result.text

    async def execute(
        self,
        action: Action,
        selection: Selection,
        variable_state: Optional[VariableStateMap] = None,
    ) -> ExecutionResult:
        if not selection:
            return ExecutionResult(success=True)

        kind = getattr(action, "kind", None)
        if kind == "event":
            if action.batch_mode == "batch":
                result = self._event_batch(action, selection, variable_state)
            else:
                result = self._event_individual(action, selection, variable_state)
        elif kind == "webhook":
            if action.batch_mode == "batch":
                result = await self._webhook_batch(action, selection, variable_state)
            else:
                result = await self._webhook_individual(action, selection, variable_state)
        else:
            return ExecutionResult(success=False, error=ValueError(f"unknown action type '{kind}'"))

        ACTION_EXECUTIONS.labels(kind, action.batch_mode, "success" if result.success else "failure").inc()
        return result

    def _event_batch(
        self, action: EventAction, selection: Selection, variable_state: Optional[VariableStateMap]
    ) -> ExecutionResult:
        self.set_action_status(action.name, {"loading": True})
        items = list(selection.values())
        try:
            if action.body_template:
                body = self._interpolated(action, interpolate_selection_batch(action.body_template, items, variable_state))
            else:
                body = json_dumps({"items": items})
            self.events.dispatch(LocalEvent(action.event_name, body))
        except Exception as exc:
            log.exception("event action %s failed", action.name)
            self.set_action_status(action.name, {"loading": False, "error": exc})
            return ExecutionResult(success=False, error=exc)
        self.set_action_status(action.name, {"loading": False, "success": True})
        return ExecutionResult(success=True)

    def _event_individual(
        self, action: EventAction, selection: Selection, variable_state: Optional[VariableStateMap]
    ) -> ExecutionResult:
        entries = list(selection.items())
        count = len(entries)
        item_results: Dict[Any, ItemResult] = {}
        failures: List[ActionFailure] = []

        self.set_action_status(action.name, {"loading": True, "item_statuses": _all_loading(entries)})
        for index, (item_id, item) in enumerate(entries):
            self.set_action_status(action.name, {"loading": True}, item_id)
            try:
                if action.body_template:
                    body = self._interpolated(
                        action,
                        interpolate_selection_individual(action.body_template, item, index, count, variable_state),
                    )
                else:
                    body = json_dumps({"id": item_id, "data": item})
                self.events.dispatch(LocalEvent(action.event_name, body))
            except Exception as exc:
                log.warning("event action %s failed for item %s: %s", action.name, item_id, exc)
                self.set_action_status(action.name, {"loading": False, "error": exc}, item_id)
                item_results[item_id] = ItemResult(success=False, error=exc)
                failures.append(_failure(action, item_id, exc))
                ITEM_RESULTS.labels(action.kind, "failure").inc()
                continue
            self.set_action_status(action.name, {"loading": False, "success": True}, item_id)
            item_results[item_id] = ItemResult(success=True)
            ITEM_RESULTS.labels(action.kind, "success").inc()

        # row failures stay on the rows; the action itself completed
        self.set_action_status(action.name, {"loading": False, "success": True})
        return ExecutionResult(success=True, item_results=item_results, failed_items=failures)

    async def _request(
        self, action: WebhookAction, url: str, body: Optional[str], limiter: RateLimiter
    ) -> None:
        started = time.perf_counter()
        try:
            async with limiter:
                response = await self.transport(
                    action.method, url, headers=build_webhook_headers(action), body=body
                )
            check_response(response)
        except Exception:
            WEBHOOK_REQUESTS.labels(action.method, "failure").inc()
            raise
        finally:
            WEBHOOK_LATENCY.labels(action.method).observe((time.perf_counter() - started) * 1000)
        WEBHOOK_REQUESTS.labels(action.method, "success").inc()

    async def _webhook_batch(
        self, action: WebhookAction, selection: Selection, variable_state: Optional[VariableStateMap]
    ) -> ExecutionResult:
        items = list(selection.values())
        self.set_action_status(action.name, {"loading": True})
        try:
            limiter = RateLimiter(action.rate_limit)
            url = self._interpolated(action, interpolate_selection_batch(action.url, items, variable_state))
            body = None
            if action.sends_body and action.body_template:
                body = self._interpolated(
                    action, interpolate_selection_batch(action.body_template, items, variable_state)
                )
            await self._request(action, url, body, limiter)
        except Exception as exc:
            log.warning("webhook action %s failed: %s", action.name, exc)
            self.set_action_status(action.name, {"loading": False, "error": exc})
            return ExecutionResult(
                success=False,
                error=exc,
                failed_items=[_failure(action, item_id, exc) for item_id in selection],
            )
        self.set_action_status(action.name, {"loading": False, "success": True})
        return ExecutionResult(success=True)

    async def _webhook_individual(
        self, action: WebhookAction, selection: Selection, variable_state: Optional[VariableStateMap]
    ) -> ExecutionResult:
        entries = list(selection.items())
        count = len(entries)
        try:
            limiter = RateLimiter(action.rate_limit)
        except ValueError as exc:
            self.set_action_status(action.name, {"loading": False, "error": exc})
            return ExecutionResult(success=False, error=exc)

        self.set_action_status(action.name, {"loading": True, "item_statuses": _all_loading(entries)})

        async def _run(index: int, item_id: Any, item: Mapping[str, Any]) -> ItemResult:
            self.set_action_status(action.name, {"loading": True}, item_id)
            try:
                url = self._interpolated(
                    action, interpolate_selection_individual(action.url, item, index, count, variable_state)
                )
                body = None
                if action.sends_body and action.body_template:
                    body = self._interpolated(
                        action,
                        interpolate_selection_individual(action.body_template, item, index, count, variable_state),
                    )
                await self._request(action, url, body, limiter)
            except Exception as exc:
                log.warning("webhook action %s failed for item %s: %s", action.name, item_id, exc)
                self.set_action_status(action.name, {"loading": False, "error": exc}, item_id)
                ITEM_RESULTS.labels(action.kind, "failure").inc()
                return ItemResult(success=False, error=exc)
            self.set_action_status(action.name, {"loading": False, "success": True}, item_id)
            ITEM_RESULTS.labels(action.kind, "success").inc()
            return ItemResult(success=True)

        outcomes = await asyncio.gather(*(_run(i, item_id, item) for i, (item_id, item) in enumerate(entries)))
        item_results = {item_id: outcome for (item_id, _), outcome in zip(entries, outcomes)}
        failures = [
            _failure(action, item_id, outcome.error)
            for item_id, outcome in item_results.items()
            if not outcome.success and outcome.error is not None
        ]

        if not failures:
            self.set_action_status(action.name, {"loading": False, "success": True})
            return ExecutionResult(success=True, item_results=item_results)

        error = PartialFailureError("Some requests failed")
        self.set_action_status(action.name, {"loading": False, "error": error})
        return ExecutionResult(success=False, error=error, item_results=item_results, failed_items=failures)

    async def execute_selection_action(
        self,
        action: Action,
        items: Sequence[Mapping[str, Any]],
        replace_variables: ReplaceVariables,
        get_item_id: Optional[Callable[[Mapping[str, Any], int], Any]] = None,
    ) -> ExecutionResult:
        """Run an action with payloads shaped by ``build_payload``.

        Rows are identified by ``get_item_id(item, index)`` (the index as a
        string by default). Event actions send one event for the whole
        selection; webhook actions send JSON bodies, one per row or one for
        all rows in batch mode.
        """
        get_item_id = get_item_id or (lambda _item, index: str(index))
        ids = [get_item_id(item, index) for index, item in enumerate(items)]

        kind = getattr(action, "kind", None)
        if kind == "event":
            try:
                if action.batch_mode == "batch":
                    payload: Any = build_bulk_payload(items, action, replace_variables)
                else:
                    payload = [build_payload(item, action, replace_variables) for item in items]
                detail = {
                    "items": payload,
                    "action": {"id": action.name, "label": action.display_name},
                    "timestamp": int(time.time() * 1000),
                }
                self.events.dispatch(LocalEvent(action.event_name, detail))
            except Exception as exc:
                log.warning("event action %s failed: %s", action.name, exc)
                return ExecutionResult(success=False, error=exc, failed_items=[_failure(action, i, exc) for i in ids])
            return ExecutionResult(success=True)

        if kind != "webhook":
            return ExecutionResult(success=False, error=ValueError(f"unknown action type '{kind}'"))

        try:
            limiter = RateLimiter(action.rate_limit)
        except ValueError as exc:
            return ExecutionResult(success=False, error=exc)
        headers = {"Content-Type": "application/json", **action.headers}

        async def _send(url: str, payload: Any) -> None:
            async with limiter:
                response = await self.transport(action.method, url, headers=headers, body=json_dumps(payload))
            check_response(response)

        if action.batch_mode == "batch":
            try:
                url = substitute_selection_variables(action.url, {}, replace_variables)
                await _send(url, build_bulk_payload(items, action, replace_variables))
            except Exception as exc:
                log.warning("webhook action %s failed: %s", action.name, exc)
                return ExecutionResult(success=False, error=exc, failed_items=[_failure(action, i, exc) for i in ids])
            return ExecutionResult(success=True)

        async def _run(item_id: Any, item: Mapping[str, Any]) -> ItemResult:
            try:
                url = substitute_selection_variables(action.url, item, replace_variables)
                await _send(url, build_payload(item, action, replace_variables))
            except Exception as exc:
                log.warning("webhook action %s failed for item %s: %s", action.name, item_id, exc)
                return ItemResult(success=False, error=exc)
            return ItemResult(success=True)

        outcomes = await asyncio.gather(*(_run(i, item) for i, item in zip(ids, items)))
        item_results = dict(zip(ids, outcomes))
        failures = [_failure(action, i, r.error) for i, r in item_results.items() if not r.success and r.error]
        if failures:
            return ExecutionResult(
                success=False,
                error=PartialFailureError("Some requests failed"),
                item_results=item_results,
                failed_items=failures,
            )
        return ExecutionResult(success=True, item_results=item_results)


async def execute_action(
    action: Action,
    selection: Selection,
    *,
    variable_state: Optional[VariableStateMap] = None,
    set_action_status: Optional[SetActionStatus] = None,
    transport: Optional[Transport] = None,
    events: Optional[EventBus] = None,
) -> ExecutionResult:
    """One-shot dispatch; a default HTTP session is opened and closed around the call."""
    dispatcher = ActionDispatcher(transport=transport, events=events, set_action_status=set_action_status)
    try:
        return await dispatcher.execute(action, selection, variable_state)
    finally:
        await dispatcher.close()


async def execute_selection_action(
    action: Action,
    items: Sequence[Mapping[str, Any]],
    replace_variables: ReplaceVariables,
    get_item_id: Optional[Callable[[Mapping[str, Any], int], Any]] = None,
    *,
    transport: Optional[Transport] = None,
    events: Optional[EventBus] = None,
) -> ExecutionResult:
    dispatcher = ActionDispatcher(transport=transport, events=events)
    try:
        return await dispatcher.execute_selection_action(action, items, replace_variables, get_item_id)
    finally:
        await dispatcher.close()
