# ABOUTME: Source document parsing for the list of entries to harvest
# ABOUTME: Produces immutable SourceEntry objects with unique ids

from .enumerator import ensure_unique_ids, parse_source, parse_source_file

__all__ = ["ensure_unique_ids", "parse_source", "parse_source_file"]
