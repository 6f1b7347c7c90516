"""Core / service layer — the selection state machine and size-budget pipeline.

Rules
-----
* No ``print()`` calls.
* No imports from ``bot``, ``cli`` or ``infra``.
* External systems are reached only through :mod:`ytd_bot.core.protocols`.
"""

from ytd_bot.core.delivery import DeliveryGate
from ytd_bot.core.flow import FlowController
from ytd_bot.core.models import (
    Button,
    DownloadResult,
    FlowStage,
    MediaKind,
    Outcome,
    Reply,
    SearchResultItem,
    Session,
    UserMode,
    VideoFormat,
)
from ytd_bot.core.protocols import ActivityLog, KeyedStore, MediaProbe, Transcoder
from ytd_bot.core.session import InMemoryStore
from ytd_bot.core.size_budget import SizeBudgetPipeline
from ytd_bot.core.ticker import ProgressTicker

__all__: list[str] = [
    "ActivityLog",
    "Button",
    "DeliveryGate",
    "DownloadResult",
    "FlowController",
    "FlowStage",
    "InMemoryStore",
    "KeyedStore",
    "MediaKind",
    "MediaProbe",
    "Outcome",
    "ProgressTicker",
    "Reply",
    "SearchResultItem",
    "Session",
    "SizeBudgetPipeline",
    "Transcoder",
    "UserMode",
    "VideoFormat",
]
