"""CLI interface for Dockerfile Analyzer."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from shared.cli import create_table, error, handle_errors, info, print_table, success, warning
from shared.logger import setup_logger

from .analyzer import DockerfileAnalyzer
from .config import AnalyzerConfig, load_config
from .exporters import export_report, render
from .models import Report, Severity

console = Console()

SEVERITY_STYLES = {
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "bold yellow",
    Severity.LOW: "cyan",
}


def create_score_bar(score: float, max_score: float = 10.0, width: int = 20) -> str:
    """
    Create ASCII bar for the security score.

    Args:
        score: Current score
        max_score: Score at a full bar
        width: Width of bar in characters

    Returns:
        ASCII bar string
    """
    if max_score <= 0:
        return ""

    filled = int((score / max_score) * width)
    return "█" * filled + "░" * (width - filled)


def display_report(report: Report) -> None:
    """
    Display an analysis report with rich formatting.

    Args:
        report: Report to display
    """
    title = "Dockerfile Analysis" if report.file_name is not None else "Docker Image Analysis"
    console.print(Panel(f"[bold cyan]{report.source_label}[/bold cyan]", title=title))

    console.print("\n[bold yellow]Metrics:[/bold yellow]")
    console.print(f"  Analyzed:        {report.analysis_date}")
    console.print(f"  Size reduction:  [bold]{report.size_reduction}[/bold]")
    console.print(f"  Original size:   {report.original_size}")
    console.print(f"  Optimized size:  {report.optimized_size}")
    console.print(
        f"  Security score:  {create_score_bar(report.security_score)} {report.security_score}/10"
    )
    console.print(f"  Layers:          {report.layers} -> {report.optimized_layers}")

    if report.issues:
        console.print(f"\n[bold yellow]Issues ({report.issue_count}):[/bold yellow]")

        table = create_table(title=None)
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Severity", width=8)
        table.add_column("Type", style="bold")
        table.add_column("Description", no_wrap=False)
        table.add_column("Suggestion", no_wrap=False, style="dim")
        table.add_column("Impact", style="green")

        for issue in report.issues:
            style = SEVERITY_STYLES[issue.severity]
            table.add_row(
                str(issue.line_number) if issue.line_number is not None else "-",
                f"[{style}]{issue.severity.value}[/{style}]",
                issue.type,
                issue.description,
                issue.suggestion,
                issue.impact,
            )

        print_table(table)

    if report.optimizations:
        console.print("\n[bold yellow]Optimization Suggestions:[/bold yellow]")
        for suggestion in report.optimizations:
            console.print(f"  💡 {suggestion}")

    console.print()


def exceeds_threshold(report: Report, fail_on: Optional[str]) -> bool:
    """Check whether any issue is at or above the given severity."""
    if not fail_on:
        return False
    threshold = Severity(fail_on.lower()).rank
    return any(issue.severity.rank >= threshold for issue in report.issues)


@click.command()
@click.argument("dockerfile", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--image", "-i", help="Image name to analyze when no Dockerfile is available")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["rich", "json", "html"], case_sensitive=False),
    default="rich",
    show_default=True,
    help="Output format",
)
@click.option(
    "--export-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Write a json/html export into this directory instead of printing",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON settings file",
)
@click.option(
    "--dedupe/--no-dedupe",
    default=None,
    help="Remove duplicate optimization suggestions",
)
@click.option(
    "--fail-on",
    type=click.Choice(["high", "medium", "low"], case_sensitive=False),
    help="Exit with code 1 if an issue of this severity or higher is found",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@handle_errors
def main(
    dockerfile: Optional[Path],
    image: Optional[str],
    output: str,
    export_dir: Optional[Path],
    config_path: Optional[Path],
    dedupe: Optional[bool],
    fail_on: Optional[str],
    verbose: bool,
):
    """
    Docker Analyzer - Find size and security problems in Dockerfiles.

    Checks base images, RUN layers, package caches, COPY/ADD usage,
    root users and hardcoded secrets, then estimates the achievable
    size and layer reduction.

    Examples:

        \b
        # Analyze a Dockerfile
        docker-analyzer Dockerfile

        \b
        # JSON output
        docker-analyzer Dockerfile --output json

        \b
        # Export an HTML report
        docker-analyzer Dockerfile --output html --export-dir reports/

        \b
        # Generic advice for an image without its Dockerfile
        docker-analyzer --image nginx:latest

        \b
        # Fail a CI job on high severity issues
        docker-analyzer Dockerfile --fail-on high
    """
    # Setup logging
    log_level = "DEBUG" if verbose else "WARNING"
    setup_logger(__name__, level=log_level)

    if (dockerfile is None) == (image is None):
        error("Provide either a DOCKERFILE path or --image, not both")
        sys.exit(2)

    output = output.lower()
    if export_dir and output == "rich":
        error("--export-dir requires --output json or --output html")
        sys.exit(2)

    config = load_config(config_path) if config_path else AnalyzerConfig()
    if dedupe is not None:
        config.deduplicate_optimizations = dedupe

    analyzer = DockerfileAnalyzer(config=config)

    if dockerfile is not None:
        report = analyzer.analyze_file(dockerfile)
    else:
        report = analyzer.analyze_image(image)

    if export_dir:
        path = export_report(report, output, export_dir)
        success(f"Report exported to {path}")
    elif output == "rich":
        display_report(report)
        if image is not None:
            warning("Analysis is limited without the original Dockerfile")
        elif not report.has_issues:
            success("No issues found!")
        else:
            info(f"Found {report.issue_count} issue(s)")
    else:
        click.echo(render(report, output))

    if exceeds_threshold(report, fail_on):
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
