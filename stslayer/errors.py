"""
Error handling for Status Slayer.

Every condition listed here is fatal: nothing is retried or downgraded, and
the CLI turns any of them into a diagnostic on stderr and a non-zero exit.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """
    Error codes for Status Slayer.

    - 1100-1199: Configuration errors
    - 1200-1299: Section command errors
    - 1300-1399: Click event errors
    - 1400-1499: Internal invariant violations
    """

    # Configuration errors (1100-1199)
    CONFIG_INVALID = 1100

    # Section command errors (1200-1299)
    COMMAND_FAILED = 1200

    # Click event errors (1300-1399)
    MALFORMED_CLICK_EVENT = 1300

    # Invariant violations (1400-1499)
    IDENTITY_NOT_FOUND = 1400


class StslayerError(Exception):
    """Base exception for Status Slayer errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            suggestion: Suggested recovery action
            context: Additional context for debugging
        """
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for structured logging.

        Returns:
            Error dictionary with code, message, suggestion, and context
        """
        result = {
            "code": self.code.value,
            "message": self.message
        }

        if self.suggestion:
            result["suggestion"] = self.suggestion

        if self.context:
            result["context"] = self.context

        return result


class ConfigInvalidError(StslayerError):
    """Configuration could not be loaded or failed validation."""

    def __init__(self, reason: str, file_path: Optional[str] = None):
        """
        Initialize configuration error.

        Args:
            reason: Why the configuration was rejected
            file_path: Path to configuration file, if one was involved
        """
        if file_path:
            message = f"Invalid configuration {file_path}: {reason}"
        else:
            message = f"Invalid configuration: {reason}"

        context = {"reason": reason}
        if file_path:
            context["file_path"] = file_path

        super().__init__(
            code=ErrorCode.CONFIG_INVALID,
            message=message,
            suggestion="Check file path, TOML syntax and section definitions",
            context=context
        )


class CommandFailedError(StslayerError):
    """A section command exited unsuccessfully or could not be started."""

    def __init__(self, section: str, command: str, exit_info: str, stderr: str = ""):
        """
        Initialize command failure.

        Args:
            section: Name of the section that owns the command
            command: Shell command that failed
            exit_info: Exit status description (e.g. "exit status 2")
            stderr: Captured standard error of the command
        """
        self.section = section
        self.command = command
        self.exit_info = exit_info
        self.stderr = stderr

        message = f"Command `{command}` of section '{section}' failed with {exit_info}"
        if stderr:
            message = f"{message}:\n{stderr}"

        super().__init__(
            code=ErrorCode.COMMAND_FAILED,
            message=message,
            suggestion="Run the command in a shell to reproduce the failure",
            context={"section": section, "command": command, "exit_info": exit_info}
        )


class MalformedClickEventError(StslayerError):
    """Click event stream from the bar host could not be decoded."""

    def __init__(self, line: str, reason: str):
        self.line = line
        super().__init__(
            code=ErrorCode.MALFORMED_CLICK_EVENT,
            message=f"Malformed click event {line!r}: {reason}",
            context={"line": line, "reason": reason}
        )


class IdentityNotFoundError(StslayerError):
    """An update arrived for a section that is not part of the snapshot."""

    def __init__(self, identity: Any):
        super().__init__(
            code=ErrorCode.IDENTITY_NOT_FOUND,
            message=f"Received update for unknown section {identity}",
            context={"identity": str(identity)}
        )
