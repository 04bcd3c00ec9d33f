"""Explainer script models and recent-topic history."""

from lumina.core.explainer.history import RecentTopics, push_recent
from lumina.core.explainer.models import (
    AppState,
    AssetAlreadySetError,
    AssetKind,
    ExplainerScript,
    GenerationProgress,
    ReadyReason,
    Scene,
)

__all__ = [
    "AppState",
    "AssetAlreadySetError",
    "AssetKind",
    "ExplainerScript",
    "GenerationProgress",
    "ReadyReason",
    "RecentTopics",
    "Scene",
    "push_recent",
]
