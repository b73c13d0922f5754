# SPDX-License-Identifier: Apache-2.0
"""Command-line runner for selection actions."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Mapping

from prometheus_client import start_http_server

from selection_actions.actions.base import Action, ExecutionResult
from selection_actions.actions.conditions import get_visible_actions
from selection_actions.actions.dispatcher import ActionDispatcher
from selection_actions.actions.events import EventBus
from selection_actions.actions.status import ActionStatusStore
from selection_actions.actions.webhook import WebhookTransport
from selection_actions.config import DispatchConfig, load_config
from selection_actions.interpolation import (
    VariableStateMap,
    interpolate_selection_batch,
    interpolate_selection_individual,
)
from selection_actions.utils import load_rows, resolve_callable

log = logging.getLogger("selection_actions")


def build_event_bus(config: DispatchConfig) -> EventBus:
    bus = EventBus()
    for event_name, qualname in config.events.items():
        bus.subscribe(event_name, resolve_callable(qualname))
    return bus


def render_dry_run(action: Action, rows: Mapping[str, Mapping[str, Any]], variables: VariableStateMap) -> List[Dict[str, Any]]:
    """Interpolate what the action would send without sending it."""
    items = list(rows.values())
    targets = {"url": getattr(action, "url", None), "body": action.body_template}
    rendered: List[Dict[str, Any]] = []
    if action.batch_mode == "batch":
        entry: Dict[str, Any] = {"ids": list(rows)}
        for key, template in targets.items():
            if template:
                result = interpolate_selection_batch(template, items, variables)
                entry[key] = result.text
                if result.errors:
                    entry.setdefault("errors", []).extend(result.errors)
        return [entry]
    for index, (item_id, item) in enumerate(rows.items()):
        entry = {"id": item_id}
        for key, template in targets.items():
            if template:
                result = interpolate_selection_individual(template, item, index, len(items), variables)
                entry[key] = result.text
                if result.errors:
                    entry.setdefault("errors", []).extend(result.errors)
        rendered.append(entry)
    return rendered


def summarise(result: ExecutionResult) -> Dict[str, Any]:
    summary: Dict[str, Any] = {"success": result.success}
    if result.error is not None:
        summary["error"] = str(result.error)
    if result.item_results is not None:
        summary["items"] = {
            str(item_id): {"success": r.success, **({"error": str(r.error)} if r.error else {})}
            for item_id, r in result.item_results.items()
        }
    return summary


async def main_async(args) -> int:
    config = load_config(args.config)
    if config.metrics_port:
        start_http_server(config.metrics_port)
    rows = load_rows(args.rows)
    visible = get_visible_actions(config.actions, list(rows.values()))

    if not args.action:
        print(json.dumps([{"name": a.name, "kind": a.kind, "batch_mode": a.batch_mode} for a in visible], indent=2))
        return 0

    action = config.get_action(args.action)
    if action not in visible:
        log.error("action %s is not available for the selected rows", action.name)
        return 2

    if args.dry_run:
        print(json.dumps(render_dry_run(action, rows, config.variables), indent=2))
        return 0

    if action.confirm_message and not args.yes:
        answer = input(f"{action.confirm_message} [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            log.info("action %s cancelled", action.name)
            return 1

    store = ActionStatusStore()
    dispatcher = ActionDispatcher(
        transport=WebhookTransport(timeout_s=config.webhook.timeout_s),
        events=build_event_bus(config),
        set_action_status=store.set_action_status,
    )
    try:
        result = await dispatcher.execute(action, rows, config.variables)
    finally:
        await dispatcher.transport.close()
    print(json.dumps(summarise(result), indent=2))
    return 0 if result.success else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a selection action over a set of rows")
    parser.add_argument("--config", default="config/actions.yaml")
    parser.add_argument("--rows", required=True, help="JSON or YAML file with the selected rows")
    parser.add_argument("--action", help="action to run; lists the available actions when omitted")
    parser.add_argument("--dry-run", action="store_true", help="print interpolated payloads without sending")
    parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        sys.exit(asyncio.run(main_async(args)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
