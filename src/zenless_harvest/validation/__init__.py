# ABOUTME: Validation layer for merged records and download security policy
# ABOUTME: Record validation returns results; security checks guard every asset write

from .security import SecurityValidator, sanitize_filename
from .validator import RecordValidator, ValidationResult

__all__ = [
    "RecordValidator",
    "SecurityValidator",
    "ValidationResult",
    "sanitize_filename",
]
