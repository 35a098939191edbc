"""Data model for Dockerfile analysis."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Severity(str, Enum):
    """Issue severity levels."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return {"high": 3, "medium": 2, "low": 1}[self.value]


@dataclass(frozen=True)
class Instruction:
    """A single parsed Dockerfile instruction."""

    keyword: str
    args: str
    line_number: int
    original_line: str


@dataclass(frozen=True)
class Issue:
    """
    A diagnostic finding produced by a rule.

    Attributes:
        severity: Closed severity level
        type: Issue category (e.g. "Security", "Base Image")
        description: What was found
        suggestion: How to fix it
        impact: Estimated effect of the fix, e.g. "~50-100MB reduction"
        line_number: Instruction position, when the issue is tied to one
    """

    severity: Severity
    type: str
    description: str
    suggestion: str
    impact: str
    line_number: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.severity, Severity):
            object.__setattr__(self, "severity", Severity(self.severity))
        if not isinstance(self.type, str) or not self.type.strip():
            raise ValueError("Issue category must be a non-empty string")

    @property
    def category(self) -> str:
        """Alias for the issue type."""
        return self.type


_PERCENT_PATTERN = re.compile(r"^(\d+)%$")


@dataclass(frozen=True)
class Report:
    """
    Immutable result of one analysis run.

    Exactly one of file_name / image_name is set.
    """

    analysis_date: str
    original_size: str
    optimized_size: str
    size_reduction: str
    security_score: float
    layers: int
    optimized_layers: int
    issues: Tuple[Issue, ...] = field(default_factory=tuple)
    optimizations: Tuple[str, ...] = field(default_factory=tuple)
    has_issues: bool = False
    file_name: Optional[str] = None
    image_name: Optional[str] = None

    def __post_init__(self):
        if (self.file_name is None) == (self.image_name is None):
            raise ValueError("Report needs exactly one of file_name or image_name")
        object.__setattr__(self, "issues", tuple(self.issues))
        object.__setattr__(self, "optimizations", tuple(self.optimizations))

    @property
    def source_label(self) -> str:
        """File name or image name, whichever the report was built from."""
        return self.file_name if self.file_name is not None else self.image_name

    @property
    def size_reduction_percent(self) -> Optional[int]:
        """Size reduction as a number, or None when not estimated."""
        match = _PERCENT_PATTERN.match(self.size_reduction)
        return int(match.group(1)) if match else None

    @property
    def issue_count(self) -> int:
        """Get number of issues."""
        return len(self.issues)

    def issues_by_severity(self, severity: Severity) -> Tuple[Issue, ...]:
        """Get issues with the given severity, in report order."""
        return tuple(i for i in self.issues if i.severity == severity)
