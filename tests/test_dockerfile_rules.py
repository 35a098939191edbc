"""Tests for the rule engine and built-in rules."""

import pytest

from tools.docker_analyzer.models import Issue, Severity
from tools.docker_analyzer.parser import parse_dockerfile
from tools.docker_analyzer.rules import (
    BUILTIN_RULES,
    Rule,
    RuleRegistry,
    RuleResult,
    check_base_image,
    check_copy_commands,
    check_general_practices,
    check_run_commands,
    default_registry,
)


def run(check, content):
    return check(tuple(parse_dockerfile(content)))


class TestRuleRegistry:
    """Test rule registration and evaluation."""

    def test_default_registry_order(self):
        """Test built-in rule order."""
        registry = default_registry()
        assert registry.names() == ["base_image", "run_commands", "copy_commands", "general_practices"]
        assert len(registry) == len(BUILTIN_RULES)

    def test_default_registry_is_fresh(self):
        """Test that registries do not share state."""
        first = default_registry()
        first.unregister("base_image")

        assert "base_image" not in first
        assert "base_image" in default_registry()

    def test_duplicate_name_rejected(self):
        """Test that rule names must be unique."""
        registry = default_registry()
        with pytest.raises(ValueError, match="already registered"):
            registry.register(Rule("base_image", lambda instructions: RuleResult()))

    def test_unregister_unknown(self):
        """Test removing a rule that does not exist."""
        with pytest.raises(KeyError):
            RuleRegistry().unregister("missing")

    def test_evaluate_concatenates_in_order(self):
        """Test that results keep rule order."""

        def make(label):
            def check(instructions):
                return RuleResult(
                    issues=[Issue(Severity.LOW, label, "d", "s", "i")],
                    optimizations=[label],
                )

            return check

        registry = RuleRegistry([Rule("a", make("A")), Rule("b", make("B"))])
        result = registry.evaluate(parse_dockerfile("FROM alpine"))

        assert [i.type for i in result.issues] == ["A", "B"]
        assert result.optimizations == ["A", "B"]

    def test_decorator_returns_function(self):
        """Test that the rule decorator leaves the function usable."""
        registry = RuleRegistry()

        @registry.rule("noop", "does nothing")
        def noop(instructions):
            return RuleResult()

        assert noop(()) == RuleResult()
        assert registry.rules[0].description == "does nothing"


class TestBaseImageRule:
    """Test FROM checks."""

    @pytest.mark.parametrize("image", ["alpine", "alpine:latest", "python:LATEST"])
    def test_unpinned_tag(self, image):
        """Test missing or latest tags."""
        result = run(check_base_image, f"FROM {image}")
        assert [i.type for i in result.issues] == ["Base Image"]
        assert result.issues[0].severity == Severity.MEDIUM
        assert result.issues[0].line_number == 1

    def test_pinned_tag(self):
        """Test that a pinned lightweight image is fine."""
        assert run(check_base_image, "FROM python:3.11-slim").issues == []

    def test_full_ubuntu(self):
        """Test full Ubuntu base image."""
        result = run(check_base_image, "FROM ubuntu:22.04")

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert issue.severity == Severity.HIGH
        assert issue.type == "Base Image Size"
        assert issue.impact == "~200-400MB reduction"
        assert result.optimizations == ["Switch to slim or alpine base images"]

    def test_slim_ubuntu(self):
        """Test that a slim Ubuntu variant is accepted."""
        assert run(check_base_image, "FROM ubuntu:22.04-slim").issues == []

    @pytest.mark.parametrize("image", ["centos:7", "fedora:39"])
    def test_heavy_distro(self, image):
        """Test other heavy distributions."""
        result = run(check_base_image, f"FROM {image}")
        assert [(i.severity, i.type, i.impact) for i in result.issues] == [
            (Severity.MEDIUM, "Base Image Size", "~300-500MB reduction")
        ]
        assert result.optimizations == []

    def test_node_without_alpine(self):
        """Test Node.js base without Alpine."""
        result = run(check_base_image, "FROM node:18")
        assert [(i.type, i.impact) for i in result.issues] == [
            ("Base Image Optimization", "~200-300MB reduction")
        ]

    def test_node_alpine(self):
        """Test that node alpine is accepted."""
        assert run(check_base_image, "FROM node:18-alpine").issues == []

    def test_every_from_checked(self):
        """Test multi-stage builds."""
        result = run(check_base_image, "FROM node:18 AS build\nFROM nginx:1.25")
        assert [i.line_number for i in result.issues] == [1]


class TestRunCommandsRule:
    """Test RUN checks."""

    def test_three_runs_allowed(self):
        """Test that three RUN commands are fine."""
        result = run(check_run_commands, "RUN a\nRUN b\nRUN c")
        assert result.issues == []
        assert result.optimizations == []

    def test_many_runs(self):
        """Test the combined-RUN issue."""
        result = run(check_run_commands, "\n".join(f"RUN step{n}" for n in range(6)))

        assert len(result.issues) == 1
        assert result.issues[0].description == "Found 6 RUN commands that could be combined"
        assert result.issues[0].impact == "~4 layers reduction"
        assert result.optimizations == ["Combine multiple RUN commands into single layers"]

    def test_apt_without_cleanup(self):
        """Test apt-get install without cache cleanup."""
        result = run(check_run_commands, "RUN apt-get update && apt-get install -y nginx")

        assert [(i.severity, i.type, i.impact) for i in result.issues] == [
            (Severity.HIGH, "Cache Cleanup", "~50-100MB reduction")
        ]
        assert "rm -rf /var/lib/apt/lists/*" in result.issues[0].suggestion

    def test_apt_with_cleanup(self):
        """Test combined update, install and cleanup in one RUN."""
        content = "RUN apt-get update && apt-get install -y nginx && rm -rf /var/lib/apt/lists/*"
        assert run(check_run_commands, content).issues == []

    def test_yum_without_cleanup(self):
        """Test yum install without cache cleanup."""
        result = run(check_run_commands, "RUN yum install -y httpd")
        assert [(i.type, i.impact) for i in result.issues] == [("Cache Cleanup", "~30-80MB reduction")]

    def test_yum_with_cleanup(self):
        """Test yum install with cleanup."""
        assert run(check_run_commands, "RUN yum install -y httpd && yum clean all").issues == []

    def test_separate_update(self):
        """Test apt-get update on its own."""
        result = run(check_run_commands, "RUN apt-get update")
        assert [(i.severity, i.type) for i in result.issues] == [(Severity.MEDIUM, "Layer Optimization")]

    def test_curl_and_wget(self):
        """Test installing both curl and wget."""
        content = "RUN apk add curl wget"
        result = run(check_run_commands, content)
        assert [(i.severity, i.type) for i in result.issues] == [(Severity.LOW, "Package Optimization")]

    def test_case_insensitive(self):
        """Test that commands are matched case-insensitively."""
        result = run(check_run_commands, "RUN APT-GET INSTALL -y nginx")
        assert [i.type for i in result.issues] == ["Cache Cleanup"]


class TestCopyCommandsRule:
    """Test COPY/ADD checks."""

    @pytest.mark.parametrize("line", ["COPY . .", "COPY * .", "ADD . ."])
    def test_whole_context(self, line):
        """Test copying the whole build context."""
        result = run(check_copy_commands, line)
        assert "Copy Optimization" in [i.type for i in result.issues]
        assert result.optimizations == ["Use .dockerignore and copy specific files"]

    def test_specific_copy(self):
        """Test that copying specific files is fine."""
        assert run(check_copy_commands, "COPY requirements.txt /app/").issues == []

    def test_add_local(self):
        """Test ADD for a local file."""
        result = run(check_copy_commands, "ADD app.tar.gz /opt/")
        assert [(i.severity, i.type) for i in result.issues] == [(Severity.LOW, "Best Practices")]

    def test_add_url(self):
        """Test that ADD from a URL is fine."""
        assert run(check_copy_commands, "ADD https://example.com/app.tar.gz /opt/").issues == []


class TestGeneralPracticesRule:
    """Test USER, WORKDIR and secret checks."""

    def test_missing_user_and_workdir(self):
        """Test a Dockerfile with neither USER nor WORKDIR."""
        result = run(check_general_practices, "FROM alpine:3.19")

        assert [(i.severity, i.type, i.line_number) for i in result.issues] == [
            (Severity.HIGH, "Security", None),
            (Severity.LOW, "Best Practices", None),
        ]
        assert result.optimizations == ["Add non-root user for security"]

    def test_user_and_workdir_present(self):
        """Test that USER and WORKDIR satisfy the rule."""
        assert run(check_general_practices, "WORKDIR /app\nUSER nobody").issues == []

    @pytest.mark.parametrize(
        "line",
        ["ENV DB_PASSWORD=hunter2", "ARG Secret=abc", "ENV AWS_ACCESS_KEY=xyz", "RUN echo api_key=1"],
    )
    def test_hardcoded_secret(self, line):
        """Test credential assignments on any instruction."""
        result = run(check_general_practices, f"WORKDIR /app\nUSER app\n{line}")

        assert len(result.issues) == 1
        assert result.issues[0].severity == Severity.HIGH
        assert result.issues[0].type == "Security"
        assert result.issues[0].line_number == 3

    def test_secret_once_per_line(self):
        """Test that a line with several markers is reported once."""
        result = run(check_general_practices, "WORKDIR /app\nUSER app\nENV PASSWORD=a SECRET=b")
        assert len(result.issues) == 1
