"""Asset orchestration and the generation session built on it."""

from lumina.core.pipeline.orchestrator import (
    AssetFailure,
    AssetOrchestrator,
    OrchestrationRun,
    RunDiscardedError,
    RunSummary,
)
from lumina.core.pipeline.session import (
    ExplainerSession,
    SessionEvent,
    SessionEventType,
)

__all__ = [
    "AssetOrchestrator",
    "OrchestrationRun",
    "RunSummary",
    "AssetFailure",
    "RunDiscardedError",
    "ExplainerSession",
    "SessionEvent",
    "SessionEventType",
]
