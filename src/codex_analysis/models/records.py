"""Displayable record of an analysis attached to a build."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from typing import Any

from codex_analysis.constants import ISSUE_COUNT_KEYWORDS, ISSUE_KEYWORDS, SUMMARY_MAX_LINES
from codex_analysis.models.enums import AnalysisType

# Stage-name keywords checked in order; first hit wins
_STAGE_TYPE_KEYWORDS: tuple[tuple[tuple[str, ...], AnalysisType], ...] = (
    (("build", "compile"), AnalysisType.BUILD),
    (("test",), AnalysisType.TEST),
    (("deploy",), AnalysisType.DEPLOYMENT),
    (("security", "scan"), AnalysisType.SECURITY),
    (("performance", "benchmark"), AnalysisType.PERFORMANCE),
    (("quality", "check"), AnalysisType.QUALITY),
)


def determine_analysis_type(stage_name: str | None) -> str:
    """Pick an analysis type from keywords in a stage name."""
    if stage_name is None:
        return AnalysisType.GENERAL.value

    lowered = stage_name.lower()
    for keywords, analysis_type in _STAGE_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return analysis_type.value
    return AnalysisType.GENERAL.value


@dataclass
class AnalysisRecord:
    """Analysis output kept alongside a build for later display.

    Attributes:
        stage_name: Stage (or builder label) the analysis belongs to.
        analysis_result: Text returned by the CLI, or a failure description.
        analysis_type: The ``--type`` used, or "error".
        timestamp: Creation time in epoch milliseconds.
    """

    stage_name: str
    analysis_result: str | None
    analysis_type: str
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def display_name(self) -> str:
        return f"Codex Analysis - {self.stage_name}"

    @property
    def url_name(self) -> str:
        return "codex-analysis-" + re.sub(r"[^a-z0-9]", "-", self.stage_name.lower())

    def summary(self) -> str:
        """First few non-blank lines of the result, joined on one line."""
        if not self.analysis_result or not self.analysis_result.strip():
            return "No analysis available"

        lines = self.analysis_result.rstrip("\n").split("\n")
        parts = [line.strip() + " " for line in lines[:SUMMARY_MAX_LINES] if line.strip()]
        if len(lines) > SUMMARY_MAX_LINES:
            parts.append("...")
        return "".join(parts)

    def has_issues(self) -> bool:
        if self.analysis_result is None:
            return False
        lowered = self.analysis_result.lower()
        return any(keyword in lowered for keyword in ISSUE_KEYWORDS)

    def issue_count(self) -> int:
        """Rough count of issue keywords (non-overlapping) in the result."""
        if self.analysis_result is None:
            return 0
        lowered = self.analysis_result.lower()
        return sum(lowered.count(keyword) for keyword in ISSUE_COUNT_KEYWORDS)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "stage_name": self.stage_name,
            "display_name": self.display_name,
            "url_name": self.url_name,
            "analysis_type": self.analysis_type,
            "analysis_result": self.analysis_result,
            "summary": self.summary(),
            "has_issues": self.has_issues(),
            "issue_count": self.issue_count(),
            "timestamp": self.timestamp,
        }
