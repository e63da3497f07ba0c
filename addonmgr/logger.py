"""
Logging system for the addon manager CLI
Routes library logging through rich and keeps a log file per command
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from rich.console import Console
from rich.logging import RichHandler

from addonmgr.constants import LOG_DATE_FORMAT, LOG_TIME_FORMAT

console = Console()
err_console = Console(stderr=True)

LIBRARY_LOGGER = "addonmgr"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Install a rich handler on the library logger

    Args:
        verbose: Show debug messages (cache hits, started addons)

    Returns:
        The configured library logger
    """
    logger = logging.getLogger(LIBRARY_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=err_console,
            show_time=False,
            show_path=verbose,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger


class _FileLogHandler(logging.Handler):
    """Forwards library log records into a command log file"""

    def __init__(self, command_logger: "CommandLogger"):
        super().__init__(level=logging.DEBUG)
        self.command_logger = command_logger

    def emit(self, record: logging.LogRecord) -> None:
        self.command_logger.write_line(record.levelname, record.getMessage())


class CommandLogger:
    """
    Manages logging for addon manager commands
    - Writes all output to a log file in real-time
    - Shows clean step output in console (unless verbose)
    - Captures library warnings raised while the command runs
    """

    def __init__(self, log_root: Path, command: str, verbose: bool = False):
        """
        Initialize logger

        Args:
            log_root: Directory holding the dated log directories
            command: Command name (e.g., 'addons:scan', 'cache:clear')
            verbose: If True, show all output in console
        """
        self.command = command
        self.verbose = verbose
        self.log_file: Optional[TextIO] = None
        self.current_step = ""
        self.has_errors = False

        # Structure: <log_root>/{date}/{time}_{command}.log
        now = datetime.now()
        logs_dir = Path(log_root) / now.strftime(LOG_DATE_FORMAT)
        logs_dir.mkdir(parents=True, exist_ok=True)

        safe_command = command.replace(":", "-")
        self.log_path = logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{safe_command}.log"
        self.log_file = open(self.log_path, "w", buffering=1, encoding="utf-8")

        self._handler = _FileLogHandler(self)
        logging.getLogger(LIBRARY_LOGGER).addHandler(self._handler)

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
Addon Manager Log
{"=" * 80}
Command: {self.command}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def write_line(self, level: str, message: str):
        """Write one line to the log file only"""
        if self.log_file:
            timestamp = datetime.now().strftime("%H:%M:%S")
            self.log_file.write(f"[{timestamp}] [{level}] {message}\n")
            self.log_file.flush()

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        self.write_line(level, message)

        if self.verbose:
            if level == "ERROR":
                console.print(f"[red]{message}[/red]")
            elif level == "WARNING":
                console.print(f"[yellow]{message}[/yellow]")
            elif level == "DEBUG":
                console.print(f"[dim]{message}[/dim]")
            else:
                console.print(message)

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., the addon being processed)
        """
        self.has_errors = True

        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
        if context:
            error_block += f"\nContext: {context}\n"
        error_block += f"{'!' * 80}\n\n"

        if self.log_file:
            self.log_file.write(error_block)
            self.log_file.flush()

        if not self.verbose:
            console.print()

        console.print(f"[bold red]✗ {error}[/bold red]")
        if context:
            console.print(f"  [color(208)]{context}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        if self.current_step and not self.verbose:
            console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            console.print(f"[color(214)]▶[/color(214)] [white]{step_name}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            console.print(f"  [dim]✓ {message}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
            console.print(f"  [yellow]⚠[/yellow] [dim]{message}[/dim]")

    def close(self):
        """Close log file"""
        logging.getLogger(LIBRARY_LOGGER).removeHandler(self._handler)

        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        """Context manager exit"""
        if exc_type is not None and exc_type != SystemExit:
            self.log_error(
                str(exc_val) if exc_val else "Command failed",
                context=f"{exc_type.__name__}",
            )
        self.close()
        return False
