"""Progress reporting for an analysis run."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessingStatus:
    is_processing: bool = False
    current_step: str = ""
    progress: int = 0
    total_files: int = 0
    processed_files: int = 0

    @classmethod
    def idle(cls) -> "ProcessingStatus":
        return cls()
