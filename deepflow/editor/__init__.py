"""Editor-side orchestration of the writing assistant features."""

from .buffer import EditorBuffer
from .debounce import ControllerStats, DebounceController, RequestToken
from .ghost import GhostCandidateSet, GhostPhase, GhostTextEngine
from .polishing import PolishingEngine, SelectionState
from .rewrite import RewriteApplier
from .session import EditorSession

__all__ = [
    "EditorBuffer",
    "ControllerStats",
    "DebounceController",
    "RequestToken",
    "GhostCandidateSet",
    "GhostPhase",
    "GhostTextEngine",
    "PolishingEngine",
    "SelectionState",
    "RewriteApplier",
    "EditorSession",
]
