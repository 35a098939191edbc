"""Core Dockerfile analysis logic."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from shared.logger import get_logger

from .config import AnalyzerConfig
from .metrics import compute_metrics
from .models import Report
from .parser import parse_dockerfile
from .report import build_image_report, build_report
from .rules import RuleRegistry, RuleResult, default_registry

logger = get_logger(__name__)


class FileTooLargeError(ValueError):
    """Raised when a Dockerfile exceeds the configured size limit."""


class DockerfileAnalyzer:
    """
    Analyze Dockerfiles for size, layer and security problems.

    Every call works on its own values, so one analyzer can be shared.

    Attributes:
        config: Analyzer configuration
        registry: Rules evaluated for each Dockerfile
    """

    def __init__(
        self,
        config: Optional[AnalyzerConfig] = None,
        registry: Optional[RuleRegistry] = None,
    ):
        """
        Initialize Dockerfile analyzer.

        Args:
            config: Analyzer configuration (defaults apply if None)
            registry: Rule registry (built-in rules if None)
        """
        self.config = config or AnalyzerConfig()
        self.registry = registry if registry is not None else default_registry()

    def analyze_dockerfile(
        self, content: str, file_name: Optional[str] = None, now: Optional[datetime] = None
    ) -> Report:
        """
        Analyze Dockerfile text.

        Args:
            content: Raw Dockerfile text
            file_name: Label for the report (defaults to "Dockerfile")
            now: Analysis time override

        Returns:
            Report
        """
        logger.info(f"Analyzing Dockerfile: {file_name or 'Dockerfile'}")

        instructions = parse_dockerfile(content)

        # Nothing to check; the absence rules would all fire on an empty file
        if not instructions:
            logger.info("No instructions found")
            result = RuleResult()
        else:
            result = self.registry.evaluate(instructions)

        metrics = compute_metrics(instructions, result.issues, self.config)

        report = build_report(
            result.issues,
            result.optimizations,
            metrics,
            file_name=file_name,
            config=self.config,
            now=now,
        )
        logger.info(
            f"Found {report.issue_count} issue(s), security score {report.security_score}"
        )
        return report

    def analyze_file(self, path: Path, now: Optional[datetime] = None) -> Report:
        """
        Read and analyze a Dockerfile on disk.

        Args:
            path: Path to the Dockerfile
            now: Analysis time override

        Returns:
            Report labelled with the file name

        Raises:
            FileTooLargeError: If the file exceeds max_file_size_mb
        """
        path = Path(path)
        size_mb = path.stat().st_size / (1024 * 1024)
        if size_mb > self.config.max_file_size_mb:
            raise FileTooLargeError(
                f"{path.name} is {size_mb:.2f} MB, limit is {self.config.max_file_size_mb} MB"
            )

        # Undecodable bytes become U+FFFD instead of failing the analysis
        content = path.read_text(encoding="utf-8", errors="replace")
        return self.analyze_dockerfile(content, file_name=path.name, now=now)

    def analyze_image(self, image_name: str, now: Optional[datetime] = None) -> Report:
        """
        Analyze an image reference without its Dockerfile.

        Args:
            image_name: Image name, e.g. "nginx:latest"
            now: Analysis time override

        Returns:
            Report with generic recommendations only

        Raises:
            ValueError: If the image name is blank
        """
        if not image_name or not image_name.strip():
            raise ValueError("Image name must not be empty")

        logger.info(f"Analyzing image: {image_name}")
        return build_image_report(image_name.strip(), config=self.config, now=now)


def analyze_dockerfile(content: str, file_name: Optional[str] = None) -> Report:
    """Analyze Dockerfile text with the default configuration."""
    return DockerfileAnalyzer().analyze_dockerfile(content, file_name)


def analyze_image(image_name: str) -> Report:
    """Analyze an image reference with the default configuration."""
    return DockerfileAnalyzer().analyze_image(image_name)
