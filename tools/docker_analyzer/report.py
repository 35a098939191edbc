"""Report assembly."""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from shared.logger import get_logger

from .config import AnalyzerConfig
from .metrics import Metrics
from .models import Issue, Report, Severity

logger = get_logger(__name__)

DEFAULT_FILE_NAME = "Dockerfile"

IMAGE_ANALYSIS_SECURITY_SCORE = 6.0
IMAGE_OPTIMIZATIONS = (
    "Use multi-stage builds to reduce final image size",
    "Consider distroless base images for production",
    "Regularly update base images for security patches",
    "Use .dockerignore to exclude unnecessary files",
)


def format_timestamp(now: Optional[datetime] = None) -> str:
    """Format a UTC ISO-8601 timestamp with millisecond precision."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def format_size_mb(size_mb: int) -> str:
    """Render a size in MB, switching to GB at 1000MB (e.g. "1.2 GB")."""
    if size_mb >= 1000:
        return f"{size_mb / 1000:g} GB"
    return f"{size_mb} MB"


def dedupe(items: Sequence[str]) -> List[str]:
    """Drop repeated strings, keeping first occurrences in order."""
    return list(dict.fromkeys(items))


def build_report(
    issues: Sequence[Issue],
    optimizations: Sequence[str],
    metrics: Metrics,
    file_name: Optional[str] = None,
    config: Optional[AnalyzerConfig] = None,
    now: Optional[datetime] = None,
) -> Report:
    """
    Assemble a Dockerfile report.

    Args:
        issues: Issues in rule order
        optimizations: Optimization suggestions in rule order
        metrics: Computed metrics
        file_name: Source label (defaults to "Dockerfile")
        config: Analyzer configuration
        now: Analysis time (defaults to current UTC time)

    Returns:
        Report
    """
    config = config or AnalyzerConfig()

    if config.deduplicate_optimizations:
        optimizations = dedupe(optimizations)

    return Report(
        file_name=file_name or DEFAULT_FILE_NAME,
        analysis_date=format_timestamp(now),
        original_size=format_size_mb(metrics.original_size_mb),
        optimized_size=f"{metrics.optimized_size_mb} MB",
        size_reduction=f"{metrics.size_reduction_percent}%",
        security_score=metrics.security_score,
        layers=metrics.layers,
        optimized_layers=metrics.optimized_layers,
        issues=tuple(issues),
        optimizations=tuple(optimizations),
        has_issues=len(issues) > 0,
    )


def build_image_report(
    image_name: str,
    config: Optional[AnalyzerConfig] = None,
    now: Optional[datetime] = None,
) -> Report:
    """
    Assemble a report for an image without its Dockerfile.

    Only generic advice is possible. The report carries one informational
    issue but hasIssues stays False unless image_report_has_issues is set.

    Args:
        image_name: Image reference, e.g. "nginx:1.25"
        config: Analyzer configuration
        now: Analysis time (defaults to current UTC time)

    Returns:
        Report
    """
    config = config or AnalyzerConfig()

    issue = Issue(
        severity=Severity.MEDIUM,
        type="Image Analysis",
        description="Unable to analyze Dockerfile for this image",
        suggestion="For detailed analysis, provide the original Dockerfile",
        impact="Limited optimization insights",
    )

    if not config.image_report_has_issues:
        logger.debug("Image-only report: hasIssues forced to False")

    return Report(
        image_name=image_name,
        analysis_date=format_timestamp(now),
        original_size="Unknown",
        optimized_size="N/A",
        size_reduction="N/A",
        security_score=IMAGE_ANALYSIS_SECURITY_SCORE,
        layers=0,
        optimized_layers=0,
        issues=(issue,),
        optimizations=IMAGE_OPTIMIZATIONS,
        has_issues=config.image_report_has_issues,
    )
