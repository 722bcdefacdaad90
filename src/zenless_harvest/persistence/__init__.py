# ABOUTME: Output layer writing run results to JSON files
# ABOUTME: Records, icon manifest and failure report

from .writer import write_assets, write_failures, write_records

__all__ = ["write_assets", "write_failures", "write_records"]
