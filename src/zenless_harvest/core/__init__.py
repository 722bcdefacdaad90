# ABOUTME: Batch orchestration layer and the data models shared across layers
# ABOUTME: Entries -> windows of item pipelines -> outcomes, records and summary counters

"""
Core Layer: Batch ingestion and item processing

This layer handles:
- Shared data models (entries, final records, outcomes, summaries)
- Per-item pipelines with bounded retry and fault isolation
- Window-based batch orchestration with pacing and progress callbacks
- Summary building and the success-rate check used by callers

Data Flow: SourceEntry list → Item pipelines → RunResult
"""

from .models import (
    CHECKPOINT_LEVELS,
    PRIMARY_LANGUAGE,
    SUPPORTED_LANGUAGES,
    AssetRecord,
    DomainRecord,
    EntityKind,
    ItemOutcome,
    Language,
    ProgressUpdate,
    RunResult,
    RunSummary,
    SourceEntry,
)

# Import pipelines and the orchestrator on demand to avoid circular imports
# Use: from zenless_harvest.core.orchestrator import BatchOrchestrator

__all__ = [
    "CHECKPOINT_LEVELS",
    "PRIMARY_LANGUAGE",
    "SUPPORTED_LANGUAGES",
    "AssetRecord",
    "DomainRecord",
    "EntityKind",
    "ItemOutcome",
    "Language",
    "ProgressUpdate",
    "RunResult",
    "RunSummary",
    "SourceEntry",
]
