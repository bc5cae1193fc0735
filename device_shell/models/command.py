"""Command execution data models."""

from dataclasses import dataclass, field
from enum import Enum


class CommandType(str, Enum):
    """Command categories used by the test framework."""

    REV_SSH_DEVICE_VERIFY = "REV_SSH_DEVICE_VERIFY"
    TRACE_INIT_COMMAND_GATEWAY = "TRACE_INIT_COMMAND_GATEWAY"
    ADDLN_TRACE_INIT_COMMAND_GATEWAY = "ADDLN_TRACE_INIT_COMMAND_GATEWAY"
    SNMP_CODE_DOWNLOAD = "SNMP_CODE_DOWNLOAD"
    SNMP_COMMAND = "SNMP_COMMAND"
    XCONF_CONFIG_UPDATE = "XCONF_CONFIG_UPDATE"
    DEFAULT = "DEFAULT"


class ConsoleType(str, Enum):
    """Device console a command is addressed to."""

    ARM = "ARM"
    ATOM = "ATOM"
    DEFAULT = "DEFAULT"


@dataclass(frozen=True)
class CommandRequest:
    """A single command to run on a device."""

    command: str
    timeout_ms: int | None = None
    command_type: CommandType | None = None
    console_type: ConsoleType | None = None
    expect: str | None = None

    @property
    def type_tag(self) -> CommandType | ConsoleType | None:
        """The tag consulted by the dispatch table, if any."""
        if self.command_type is not None:
            return self.command_type
        return self.console_type


@dataclass
class CommandOutcome:
    """Result of one command within a batch."""

    command: str
    success: bool
    output: str = ""
    error: str | None = None
    suppressed: bool = False


@dataclass
class ExecutionResult:
    """Ordered outcomes of a batch execution."""

    outcomes: list[CommandOutcome] = field(default_factory=list)

    @property
    def text(self) -> str:
        """Aggregate text; failed and suppressed commands contribute nothing."""
        return "".join(
            f"{outcome.output}\n"
            for outcome in self.outcomes
            if outcome.success and not outcome.suppressed
        )

    @property
    def all_succeeded(self) -> bool:
        """True when no command in the batch failed."""
        return all(outcome.success for outcome in self.outcomes)

    @property
    def failed(self) -> list[CommandOutcome]:
        """Outcomes of commands that failed."""
        return [outcome for outcome in self.outcomes if not outcome.success]
