"""Docker Analyzer - Static analysis of Dockerfiles for size and security."""

from .analyzer import DockerfileAnalyzer, FileTooLargeError, analyze_dockerfile, analyze_image
from .config import AnalyzerConfig, ConfigError, load_config
from .models import Instruction, Issue, Report, Severity
from .rules import Rule, RuleRegistry, RuleResult, default_registry

__all__ = [
    "DockerfileAnalyzer",
    "FileTooLargeError",
    "analyze_dockerfile",
    "analyze_image",
    "AnalyzerConfig",
    "ConfigError",
    "load_config",
    "Instruction",
    "Issue",
    "Report",
    "Severity",
    "Rule",
    "RuleRegistry",
    "RuleResult",
    "default_registry",
]
