"""
Export component models.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExportInput:
    user_id: str


@dataclass(frozen=True)
class ExportOutput:
    """A generated CSV document and what went into it."""

    filename: str
    content: str
    link_count: int
    event_count: int
    partial: bool = False
