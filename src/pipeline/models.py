# src/pipeline/models.py — v1
"""Per-phase and per-run build reports."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class FileFailure(BaseModel):
    path: str
    error: str
    fatal: bool = False


class PhaseReport(BaseModel):
    """Totals for one phase."""

    phase: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cache_hits: int = 0
    bytes_before: int = 0
    bytes_after: int = 0
    duration_ms: int = 0
    failures: list[FileFailure] = Field(default_factory=list)

    @property
    def bytes_saved(self) -> int:
        return self.bytes_before - self.bytes_after


class BuildResult(BaseModel):
    """Outcome of a full build."""

    run_id: str
    output_path: Path
    cache_status: str
    phases: list[PhaseReport] = Field(default_factory=list)
    generated: dict[str, list[str]] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def files_processed(self) -> int:
        return sum(p.succeeded for p in self.phases)

    @property
    def files_failed(self) -> int:
        return sum(p.failed for p in self.phases)

    @property
    def bytes_saved(self) -> int:
        return sum(p.bytes_saved for p in self.phases)

    def phase(self, name: str) -> PhaseReport | None:
        for report in self.phases:
            if report.phase == name:
                return report
        return None
