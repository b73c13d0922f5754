# SPDX-License-Identifier: Apache-2.0
"""Action definitions and execution results shared by the dispatcher."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

BatchMode = Literal["batch", "individual"]
HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
ContentType = Literal["none", "json", "text"]

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(slots=True)
class ValueCondition:
    kind: ClassVar[str] = "Value"
    value: str


@dataclass(slots=True)
class RangeCondition:
    kind: ClassVar[str] = "Range"
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(slots=True)
class RegexCondition:
    kind: ClassVar[str] = "Regex"
    expr: str


@dataclass(slots=True)
class MiscCondition:
    kind: ClassVar[str] = "Misc"
    value: Literal["empty", "null", "NaN", "true", "false"]


ActionCondition = Union[ValueCondition, RangeCondition, RegexCondition, MiscCondition]


@dataclass(slots=True)
class FieldMapping:
    source: str
    target: str


@dataclass(slots=True)
class RateLimiterConfig:
    requests_per_second: Optional[float] = None
    max_concurrent: Optional[int] = None


@dataclass(slots=True, kw_only=True)
class BaseAction:
    kind: ClassVar[str] = ""

    name: str
    label: Optional[str] = None
    icon: Optional[str] = None
    confirm_message: Optional[str] = None
    enabled: bool = True
    batch_mode: BatchMode = "individual"
    body_template: Optional[str] = None
    field_mapping: List[FieldMapping] = field(default_factory=list)
    condition: Optional[ActionCondition] = None

    @property
    def display_name(self) -> str:
        return self.label or self.name


@dataclass(slots=True, kw_only=True)
class EventAction(BaseAction):
    """Dispatches a local event carrying the selection payload."""

    kind: ClassVar[str] = "event"

    event_name: str


@dataclass(slots=True, kw_only=True)
class WebhookAction(BaseAction):
    """Calls an HTTP endpoint with the selection interpolated into URL and body."""

    kind: ClassVar[str] = "webhook"

    url: str
    method: HttpMethod = "POST"
    content_type: ContentType = "none"
    headers: Dict[str, str] = field(default_factory=dict)
    rate_limit: RateLimiterConfig = field(default_factory=RateLimiterConfig)

    @property
    def sends_body(self) -> bool:
        return self.method in BODY_METHODS and self.content_type != "none"


Action = Union[EventAction, WebhookAction]


@dataclass(slots=True)
class ItemResult:
    success: bool
    error: Optional[Exception] = None


@dataclass(slots=True)
class ActionFailure:
    item_id: Any
    action_name: str
    message: str
    timestamp: float


@dataclass(slots=True)
class ExecutionResult:
    success: bool
    error: Optional[Exception] = None
    item_results: Optional[Dict[Any, ItemResult]] = None
    failed_items: List[ActionFailure] = field(default_factory=list)
