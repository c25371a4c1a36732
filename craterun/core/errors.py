"""
Error taxonomy and reserved exit codes.

Every fatal condition is a ``CraterunError`` carrying the exit code the
CLI terminates with. A resolution miss is not an error: it is what
triggers an install.

Exit codes (the child's own code is passed through verbatim otherwise):

    EXIT_USAGE             2    invalid invocation or configuration
    EXIT_INSTALL_FAILED   69    nothing ran: resolution/installation failed
    EXIT_EXEC_FAILED     126    binary found but could not be launched
    EXIT_SIGNALED        254    binary was killed by a signal
    128 + N                     craterun interrupted by signal N mid-install
"""

from __future__ import annotations

EXIT_USAGE = 2
EXIT_INSTALL_FAILED = 69
EXIT_EXEC_FAILED = 126
EXIT_SIGNALED = 254


class CraterunError(Exception):
    """Base class for fatal craterun errors."""

    exit_code: int = EXIT_INSTALL_FAILED


class ParseError(CraterunError):
    """Malformed specifier, unknown option or misplaced ``--``."""

    exit_code = EXIT_USAGE


class ConfigError(CraterunError):
    """Raised when the configuration file is invalid or unreadable."""

    exit_code = EXIT_USAGE


class InstallError(CraterunError):
    """Raised when no backend could install the package, or the install
    produced no resolvable binary."""

    exit_code = EXIT_INSTALL_FAILED

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class InstallInterrupted(CraterunError):
    """Raised after a signal was forwarded to a running installer."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"installation interrupted by signal {signum}")
        self.signum = signum
        self.exit_code = 128 + signum


class ExecError(CraterunError):
    """The binary was resolved but could not be launched."""

    exit_code = EXIT_EXEC_FAILED
