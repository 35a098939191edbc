"""Rule engine and built-in Dockerfile rules."""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from shared.logger import get_logger

from .models import Instruction, Issue, Severity

logger = get_logger(__name__)


@dataclass
class RuleResult:
    """Issues and optimization suggestions emitted by rules."""

    issues: List[Issue] = field(default_factory=list)
    optimizations: List[str] = field(default_factory=list)

    def extend(self, other: "RuleResult") -> None:
        """Append another result, keeping order."""
        self.issues.extend(other.issues)
        self.optimizations.extend(other.optimizations)


CheckFunc = Callable[[Sequence[Instruction]], RuleResult]


@dataclass(frozen=True)
class Rule:
    """A named, independent check over the full instruction sequence."""

    name: str
    check: CheckFunc
    description: str = ""

    def __call__(self, instructions: Sequence[Instruction]) -> RuleResult:
        return self.check(instructions)


class RuleRegistry:
    """
    Ordered collection of rules.

    Rules run in registration order and each one receives the same
    immutable tuple of instructions, so adding a rule never changes what
    the others see.

    Attributes:
        rules: Registered rules in evaluation order
    """

    def __init__(self, rules: Optional[Iterable[Rule]] = None):
        """
        Initialize the registry.

        Args:
            rules: Rules to register up front
        """
        self._rules: Dict[str, Rule] = {}
        for rule in rules or ():
            self.register(rule)

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return tuple(self._rules.values())

    def names(self) -> List[str]:
        """Get rule names in evaluation order."""
        return list(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: str) -> bool:
        return name in self._rules

    def register(self, rule: Rule) -> Rule:
        """
        Add a rule at the end of the evaluation order.

        Raises:
            ValueError: If a rule with the same name is already registered
        """
        if rule.name in self._rules:
            raise ValueError(f"Rule already registered: {rule.name}")
        self._rules[rule.name] = rule
        return rule

    def rule(self, name: str, description: str = "") -> Callable[[CheckFunc], CheckFunc]:
        """Decorator registering a plain check function."""

        def decorator(check: CheckFunc) -> CheckFunc:
            self.register(Rule(name=name, check=check, description=description))
            return check

        return decorator

    def unregister(self, name: str) -> None:
        """Remove a rule by name."""
        if name not in self._rules:
            raise KeyError(f"Unknown rule: {name}")
        del self._rules[name]

    def evaluate(self, instructions: Sequence[Instruction]) -> RuleResult:
        """
        Run every rule over the instructions.

        Args:
            instructions: Parsed instructions

        Returns:
            Combined RuleResult in rule order
        """
        frozen = tuple(instructions)
        combined = RuleResult()

        for rule in self._rules.values():
            result = rule(frozen)
            logger.debug(
                f"Rule {rule.name}: {len(result.issues)} issue(s), "
                f"{len(result.optimizations)} optimization(s)"
            )
            combined.extend(result)

        return combined


def _with_keyword(instructions: Sequence[Instruction], *keywords: str) -> List[Instruction]:
    return [inst for inst in instructions if inst.keyword in keywords]


def check_base_image(instructions: Sequence[Instruction]) -> RuleResult:
    """Check FROM instructions for unpinned tags and heavy base images."""
    result = RuleResult()

    for inst in _with_keyword(instructions, "FROM"):
        base_image = inst.args.lower()

        if ":latest" in base_image or ":" not in base_image:
            result.issues.append(
                Issue(
                    severity=Severity.MEDIUM,
                    type="Base Image",
                    description="Using :latest tag or no tag specified",
                    suggestion="Use specific version tags for reproducible builds",
                    impact="Better build reproducibility",
                    line_number=inst.line_number,
                )
            )

        if "ubuntu" in base_image and "slim" not in base_image:
            result.issues.append(
                Issue(
                    severity=Severity.HIGH,
                    type="Base Image Size",
                    description="Using full Ubuntu image instead of slim variant",
                    suggestion="Use ubuntu:20.04-slim or consider alpine-based images",
                    impact="~200-400MB reduction",
                    line_number=inst.line_number,
                )
            )
            result.optimizations.append("Switch to slim or alpine base images")

        if "centos" in base_image or "fedora" in base_image:
            result.issues.append(
                Issue(
                    severity=Severity.MEDIUM,
                    type="Base Image Size",
                    description="Using heavy base image",
                    suggestion="Consider alpine or distroless alternatives",
                    impact="~300-500MB reduction",
                    line_number=inst.line_number,
                )
            )

        if "node" in base_image and "alpine" not in base_image:
            result.issues.append(
                Issue(
                    severity=Severity.MEDIUM,
                    type="Base Image Optimization",
                    description="Consider using Alpine variant for smaller size",
                    suggestion="Use node:18-alpine instead of node:18",
                    impact="~200-300MB reduction",
                    line_number=inst.line_number,
                )
            )

    return result


# (install marker, cleanup marker, manager name, impact)
PACKAGE_MANAGERS = (
    ("apt-get install", "rm -rf /var/lib/apt/lists/*", "apt-get", "~50-100MB reduction"),
    ("yum install", "yum clean all", "yum", "~30-80MB reduction"),
)

MAX_RUN_COMMANDS = 3


def check_run_commands(instructions: Sequence[Instruction]) -> RuleResult:
    """Check RUN instructions for layer count and package cache hygiene."""
    result = RuleResult()
    run_instructions = _with_keyword(instructions, "RUN")

    if len(run_instructions) > MAX_RUN_COMMANDS:
        result.issues.append(
            Issue(
                severity=Severity.MEDIUM,
                type="Layer Optimization",
                description=f"Found {len(run_instructions)} RUN commands that could be combined",
                suggestion="Combine related RUN commands using && to reduce layers",
                impact=f"~{len(run_instructions) - 2} layers reduction",
            )
        )
        result.optimizations.append("Combine multiple RUN commands into single layers")

    for inst in run_instructions:
        command = inst.args.lower()

        for install_marker, cleanup_marker, manager, impact in PACKAGE_MANAGERS:
            if install_marker in command and cleanup_marker not in command:
                result.issues.append(
                    Issue(
                        severity=Severity.HIGH,
                        type="Cache Cleanup",
                        description=f"{manager} install without cache cleanup",
                        suggestion=f"Add && {cleanup_marker} to clean package cache",
                        impact=impact,
                        line_number=inst.line_number,
                    )
                )

        if "apt-get update" in command and "install" not in command:
            result.issues.append(
                Issue(
                    severity=Severity.MEDIUM,
                    type="Layer Optimization",
                    description="apt-get update in separate RUN command",
                    suggestion="Combine apt-get update with install in same RUN command",
                    impact="Better caching and fewer layers",
                    line_number=inst.line_number,
                )
            )

        if "curl wget" in command:
            result.issues.append(
                Issue(
                    severity=Severity.LOW,
                    type="Package Optimization",
                    description="Installing both curl and wget",
                    suggestion="Choose either curl or wget, not both",
                    impact="~10-20MB reduction",
                    line_number=inst.line_number,
                )
            )

    return result


WHOLE_CONTEXT_PATTERNS = (". .", "* .")


def check_copy_commands(instructions: Sequence[Instruction]) -> RuleResult:
    """Check COPY/ADD instructions for whole-context copies and needless ADD."""
    result = RuleResult()

    for inst in _with_keyword(instructions, "COPY", "ADD"):
        if any(pattern in inst.args for pattern in WHOLE_CONTEXT_PATTERNS):
            result.issues.append(
                Issue(
                    severity=Severity.MEDIUM,
                    type="Copy Optimization",
                    description="Copying entire context instead of specific files",
                    suggestion="Copy only necessary files and use .dockerignore",
                    impact="Reduced context size and better caching",
                    line_number=inst.line_number,
                )
            )
            result.optimizations.append("Use .dockerignore and copy specific files")

        if inst.keyword == "ADD" and "http" not in inst.args:
            result.issues.append(
                Issue(
                    severity=Severity.LOW,
                    type="Best Practices",
                    description="Using ADD instead of COPY for local files",
                    suggestion="Use COPY for local files, ADD only for URLs/archives",
                    impact="Better clarity and security",
                    line_number=inst.line_number,
                )
            )

    return result


SECRET_MARKERS = ("password=", "secret=", "key=")


def check_general_practices(instructions: Sequence[Instruction]) -> RuleResult:
    """Check for root user, missing WORKDIR and hardcoded secrets."""
    result = RuleResult()
    keywords = {inst.keyword for inst in instructions}

    if "USER" not in keywords:
        result.issues.append(
            Issue(
                severity=Severity.HIGH,
                type="Security",
                description="Running as root user",
                suggestion="Add USER instruction to run as non-root user",
                impact="Improved security posture",
            )
        )
        result.optimizations.append("Add non-root user for security")

    if "WORKDIR" not in keywords:
        result.issues.append(
            Issue(
                severity=Severity.LOW,
                type="Best Practices",
                description="No WORKDIR specified",
                suggestion="Use WORKDIR to set working directory explicitly",
                impact="Better organization and predictability",
            )
        )

    for inst in instructions:
        line = inst.original_line.lower()
        if any(marker in line for marker in SECRET_MARKERS):
            result.issues.append(
                Issue(
                    severity=Severity.HIGH,
                    type="Security",
                    description="Hardcoded secrets detected",
                    suggestion="Use build-time secrets or environment variables",
                    impact="Improved security",
                    line_number=inst.line_number,
                )
            )

    return result


BUILTIN_RULES: Tuple[Rule, ...] = (
    Rule("base_image", check_base_image, "Base image tag and size checks"),
    Rule("run_commands", check_run_commands, "RUN layer and package cache checks"),
    Rule("copy_commands", check_copy_commands, "COPY/ADD usage checks"),
    Rule("general_practices", check_general_practices, "User, WORKDIR and secret checks"),
)


def default_registry() -> RuleRegistry:
    """Create a registry holding the built-in rules."""
    return RuleRegistry(BUILTIN_RULES)
