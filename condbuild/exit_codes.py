"""
Standard exit codes and error types for condbuild commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong or deprecated arguments)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # Registry or GitHub API call failed
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
NETWORK_ERROR = 68       # Network connection failed
AUTH_ERROR = 69          # Authentication/authorization failed
DATA_ERROR = 70          # Data format or validation error
BUILD_ERROR = 72         # Image build or push failed
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'JSONDecodeError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ValidationError(CommandError):
    """Raised for deprecated or conflicting inputs. Always fatal."""
    def __init__(self, message: str):
        super().__init__(message, USAGE_ERROR)


class BuildError(CommandError):
    """Raised when the build/push collaborator fails."""
    def __init__(self, message: str):
        super().__init__(message, BUILD_ERROR)


class TagResolutionError(CommandError):
    """Raised when a build would push an image without any tag."""
    def __init__(self, message: str = "No tags resolved; refusing to push an untagged image"):
        super().__init__(message, DATA_ERROR)


class APIError(CommandError):
    """Raised when an external API call fails."""
    def __init__(self, message: str):
        super().__init__(message, API_ERROR)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


# Recovered errors. These never reach the CLI; callers downgrade them.

class ProbeError(Exception):
    """Registry manifest check failed or timed out."""


class AttestationError(Exception):
    """Attestation could not be issued, usually a permissions gap."""


class SbomError(Exception):
    """SBOM generation failed."""
