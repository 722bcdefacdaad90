# ABOUTME: Extraction layer turning wiki payloads into typed per-language and merged records
# ABOUTME: Exposes the engine, the payload schema, merge helpers and tag matching

from .engine import ExtractionEngine, parse_stat_value, select_checkpoint_value
from .merge import merge_records, to_domain_record
from .models import ExtractedRecord, ExtractionResult, MergedRecord
from .payload import RawPayload
from .tags import TagExtractor, TagMatch

__all__ = [
    "ExtractedRecord",
    "ExtractionEngine",
    "ExtractionResult",
    "MergedRecord",
    "RawPayload",
    "TagExtractor",
    "TagMatch",
    "merge_records",
    "parse_stat_value",
    "select_checkpoint_value",
    "to_domain_record",
]
