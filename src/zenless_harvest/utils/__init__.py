# ABOUTME: Cross-cutting utilities and shared infrastructure
# ABOUTME: Supporting services: logging, retry policy, rich output helpers

"""
Utils Layer: Shared infrastructure and cross-cutting concerns

This layer provides:
- Logging configuration and window progress display
- The item retry policy (tenacity)
- Rich tables for run summaries and failures

Data Flow: Supporting services for all other layers
"""

from . import logging

__all__ = [
    "logging",
]
