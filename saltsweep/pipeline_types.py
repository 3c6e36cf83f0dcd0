"""
Typed result dataclasses for sweep step tracking.

Each step returns a StepResult; a run collects them in a SweepRunResult
that is saved as JSON for provenance.
"""

import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class StepStatus(str, Enum):
    """Pipeline step outcome status."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _get_git_sha():
    """Return the short git SHA of the current HEAD, or None."""
    try:
        return subprocess.check_output(
            ["git", "rev-parse", "--short", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
    except (subprocess.SubprocessError, FileNotFoundError):
        return None


@dataclass
class StepResult:
    """Result of a single pipeline step execution."""

    step_name: str
    status: str
    input_summary: dict = field(default_factory=dict)
    output_summary: dict = field(default_factory=dict)
    timing_seconds: float = 0.0
    warnings: list = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    started_at: str = field(default_factory=_now_iso)
    completed_at: Optional[str] = None

    @property
    def ok(self):
        """Skipped steps were turned off on purpose and do not fail a run."""
        return self.status in (StepStatus.SUCCESS, StepStatus.SKIPPED)

    def to_dict(self):
        return {
            "step_name": self.step_name,
            "status": str(StepStatus(self.status).value),
            "input_summary": self.input_summary,
            "output_summary": self.output_summary,
            "timing_seconds": self.timing_seconds,
            "warnings": self.warnings,
            "error": self.error,
            "error_type": self.error_type,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }

    @classmethod
    def from_dict(cls, d):
        return cls(
            step_name=d["step_name"],
            status=d["status"],
            input_summary=d.get("input_summary", {}),
            output_summary=d.get("output_summary", {}),
            timing_seconds=d.get("timing_seconds", 0.0),
            warnings=d.get("warnings", []),
            error=d.get("error"),
            error_type=d.get("error_type"),
            started_at=d.get("started_at", ""),
            completed_at=d.get("completed_at"),
        )


@dataclass
class SweepRunResult:
    """Result of a complete sweep run."""

    run_dir: str = ""
    run_id: str = ""
    parking_range: tuple = ()
    road_range: tuple = ()
    combination_count: int = 0
    watersheds_evaluated: list = field(default_factory=list)
    failed_watersheds: dict = field(default_factory=dict)
    unranked_watersheds: list = field(default_factory=list)
    step_results: list = field(default_factory=list)
    total_time_seconds: float = 0.0
    output_files: list = field(default_factory=list)
    git_sha: Optional[str] = field(default_factory=_get_git_sha)
    started_at: str = field(default_factory=_now_iso)

    @property
    def all_ok(self):
        return bool(self.step_results) and all(s.ok for s in self.step_results)

    @property
    def failed_steps(self):
        return [s for s in self.step_results if not s.ok]

    def to_dict(self):
        return {
            "run_dir": self.run_dir,
            "run_id": self.run_id,
            "parking_range": list(self.parking_range),
            "road_range": list(self.road_range),
            "combination_count": self.combination_count,
            "watersheds_evaluated": self.watersheds_evaluated,
            "failed_watersheds": self.failed_watersheds,
            "unranked_watersheds": self.unranked_watersheds,
            "steps": [s.to_dict() for s in self.step_results],
            "total_time_seconds": self.total_time_seconds,
            "output_files": self.output_files,
            "all_ok": self.all_ok,
            "git_sha": self.git_sha,
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, d):
        result = cls(
            run_dir=d.get("run_dir", ""),
            run_id=d.get("run_id", ""),
            parking_range=tuple(d.get("parking_range", ())),
            road_range=tuple(d.get("road_range", ())),
            combination_count=d.get("combination_count", 0),
            watersheds_evaluated=d.get("watersheds_evaluated", []),
            failed_watersheds=d.get("failed_watersheds", {}),
            unranked_watersheds=d.get("unranked_watersheds", []),
            total_time_seconds=d.get("total_time_seconds", 0.0),
            output_files=d.get("output_files", []),
            git_sha=d.get("git_sha"),
            started_at=d.get("started_at", ""),
        )
        result.step_results = [StepResult.from_dict(s) for s in d.get("steps", [])]
        return result
