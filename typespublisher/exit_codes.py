"""
Standard exit codes for types-publisher commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
API_ERROR = 65           # Registry call failed (fetch, publish, tag, install)
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
NETWORK_ERROR = 68       # Network connection failed
DATA_ERROR = 70          # Data format error
PRECONDITION_ERROR = 72  # Published state is not something we can build on
VALIDATION_ERROR = 73    # Installed artifact does not match the local bundle
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ConnectionError': NETWORK_ERROR,
    'Timeout': NETWORK_ERROR,
    'TimeoutError': NETWORK_ERROR,
    'HTTPError': API_ERROR,
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


class RegistryError(CommandError):
    """Raised when a registry fetch, publish, tag or install fails."""
    def __init__(self, message: str):
        super().__init__(message, API_ERROR)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class PreconditionViolation(CommandError):
    """Raised when the published version is not one this tool could have produced."""
    def __init__(self, message: str):
        super().__init__(message, PRECONDITION_ERROR)


class DirectoryMismatch(CommandError):
    """Raised when two directory trees differ."""
    def __init__(self, message: str, report: Optional[str] = None):
        super().__init__(message, VALIDATION_ERROR)
        self.report = report or message


class ValidationMismatch(CommandError):
    """Raised when the installed package differs from the generated bundle."""
    def __init__(self, message: str, report: Optional[str] = None):
        super().__init__(message, VALIDATION_ERROR)
        self.report = report or message


class SubsetMismatch(CommandError):
    """Raised when an unpromoted publish contains an index key we can't account for."""
    def __init__(self, key: str):
        super().__init__(f"Installed registry index has unexpected key {key!r}", VALIDATION_ERROR)
        self.key = key
