"""
Base Command Class

Abstract base for all addon manager CLI commands.
Provides common functionality and structure.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from addonmgr.exceptions import AddonManagerError
from addonmgr.logger import CommandLogger, setup_logging
from addonmgr.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling
    - JSON output support
    """

    def __init__(self, verbose: bool = False, json_output: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self.console = Console()
        self.logger: Optional[CommandLogger] = None
        setup_logging(verbose)

    def init_logger(self, log_root: Path, command_name: str) -> Optional[CommandLogger]:
        """
        Initialize command logger (skip in JSON mode).

        Args:
            log_root: Directory that holds the dated log directories
            command_name: Command name

        Returns:
            CommandLogger instance or None if JSON mode
        """
        if self.json_output:
            return None
        self.logger = CommandLogger(log_root, command_name, verbose=self.verbose)
        return self.logger

    def output_json(self, data: Dict[str, Any], exit_code: int = 0) -> None:
        """
        Output data as JSON and exit.

        Args:
            data: Data to output as JSON
            exit_code: Exit code (0 for success, non-zero for error)
        """
        print(json.dumps(data, indent=2, default=str))
        if exit_code != 0:
            raise SystemExit(exit_code)

    def output_json_error(
        self, error: str, details: Optional[Dict[str, Any]] = None, exit_code: int = 1
    ) -> None:
        """Output error as JSON and exit."""
        error_data: Dict[str, Any] = {"error": error}
        if details:
            error_data["details"] = details
        self.output_json(error_data, exit_code=exit_code)

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(title=title, subtitle=subtitle, details=details, console=self.console)

    def print_success(self, message: str) -> None:
        """Print success message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {message}[/red]")

    def print_warning(self, message: str) -> None:
        """Print warning message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{message}[/dim]")

    def exit_with_error(self, message: str, code: int = 1) -> None:
        """
        Print error and exit.

        Args:
            message: Error message
            code: Exit code
        """
        if self.json_output:
            self.output_json_error(message, exit_code=code)
        self.print_error(message)
        raise SystemExit(code)

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            raise SystemExit(130)
        except SystemExit:
            raise
        except AddonManagerError as e:
            if self.json_output:
                self.output_json_error(e.message, {"context": e.context} if e.context else None)
            self.console.print(f"\n[bold red]✗ {e.message}[/bold red]")
            if e.context:
                self.console.print(f"  [dim]{e.context}[/dim]")
            if self.logger:
                self.logger.log_error(e.message, context=e.context)
                self.console.print(f"[dim]Logs saved to:[/dim] {self.logger.log_path}\n")
            raise SystemExit(1)
        except PermissionError as e:
            self.console.print(f"\n[bold red]✗ Permission denied:[/bold red] {e}\n")
            self.console.print("[dim]Try running with appropriate permissions[/dim]\n")
            if self.logger:
                self.logger.log_error(f"Permission error: {e}")
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
                self.logger = None
