"""Heuristic metrics derived from instructions and issues."""

import math
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from shared.logger import get_logger

from .config import AnalyzerConfig
from .models import Instruction, Issue, Severity

logger = get_logger(__name__)

LAYER_KEYWORDS = ("FROM", "RUN", "COPY", "ADD")
LAYER_REDUCTION_RATIO = 0.3

MAX_SECURITY_SCORE = 10.0
SECURITY_DEDUCTIONS = {
    Severity.HIGH: 2.0,
    Severity.MEDIUM: 1.0,
    Severity.LOW: 0.5,
}

# "200-400MB" or "50MB"
SIZE_IMPACT_PATTERN = re.compile(r"(\d+)(?:-(\d+))?MB")
SIZE_BASELINE_MB = 1000


@dataclass(frozen=True)
class Metrics:
    """Metrics for one analysis run."""

    layers: int
    optimized_layers: int
    security_score: float
    size_reduction_percent: int
    original_size_mb: int
    optimized_size_mb: int


def count_layers(instructions: Sequence[Instruction]) -> int:
    """Count instructions that produce an image layer."""
    return sum(1 for inst in instructions if inst.keyword in LAYER_KEYWORDS)


def optimized_layer_count(layers: int) -> int:
    """
    Estimate the layer count after optimization.

    Removes 30% of layers (rounded down) but never goes below one layer.
    An empty Dockerfile stays at zero.
    """
    if layers <= 0:
        return 0
    return max(layers - math.floor(layers * LAYER_REDUCTION_RATIO), 1)


def security_score(issues: Sequence[Issue]) -> float:
    """
    Score security from 10 down, per "Security" issue.

    Args:
        issues: Issues found

    Returns:
        Score between 0 and 10
    """
    score = MAX_SECURITY_SCORE
    for issue in issues:
        if issue.type == "Security":
            score -= SECURITY_DEDUCTIONS[issue.severity]
    return max(score, 0.0)


def impact_size_mb(impact: str) -> float:
    """
    Extract the estimated size saving from impact text.

    Returns the midpoint of a range, the single value, or 0 when the text
    carries no size figure.
    """
    match = SIZE_IMPACT_PATTERN.search(impact)
    if not match:
        return 0.0
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    return (low + high) / 2


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def size_reduction_percent(issues: Sequence[Issue], cap: int = 80) -> int:
    """
    Estimate size reduction as a percentage of a 1000MB baseline.

    Args:
        issues: Issues found
        cap: Upper bound for the result

    Returns:
        Percentage between 0 and cap
    """
    total = sum(impact_size_mb(issue.impact) for issue in issues)
    return min(_round_half_up(total * 100 / SIZE_BASELINE_MB), cap)


def optimized_size_mb(percent: int, original_mb: int = 1200) -> int:
    """Scale the original size estimate by the reduction percentage."""
    return original_mb * (100 - percent) // 100


def compute_metrics(
    instructions: Sequence[Instruction],
    issues: Sequence[Issue],
    config: Optional[AnalyzerConfig] = None,
) -> Metrics:
    """
    Compute all metrics for one run.

    Args:
        instructions: Parsed instructions
        issues: Issues emitted by the rules
        config: Analyzer configuration

    Returns:
        Metrics object
    """
    config = config or AnalyzerConfig()

    layers = count_layers(instructions)
    percent = size_reduction_percent(issues, cap=config.max_size_reduction_percent)

    metrics = Metrics(
        layers=layers,
        optimized_layers=optimized_layer_count(layers),
        security_score=security_score(issues),
        size_reduction_percent=percent,
        original_size_mb=config.assumed_original_size_mb,
        optimized_size_mb=optimized_size_mb(percent, config.assumed_original_size_mb),
    )
    logger.debug(f"Computed metrics: {metrics}")
    return metrics
