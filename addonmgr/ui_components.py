"""
Addon Manager CLI - UI Components
Standardized headers and status styling
"""

from rich.console import Console

LOGO = "addonmgr"

# Color scheme
BRAND_COLOR = "cyan"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
INFO_COLOR = "blue"

# Requirement status name -> style
STATUS_STYLES = {
    "enabled": SUCCESS_COLOR,
    "disabled": INFO_COLOR,
    "missing": ERROR_COLOR,
    "version": WARNING_COLOR,
}


def show_header(
    title: str,
    subtitle: str = None,
    details: dict = None,
    console: Console = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Addons", "Theme Chain")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Requirements",
            details={"Addon": "vanilla", "Type": "addon"}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim]"
    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [{BRAND_COLOR}]{value}[/{BRAND_COLOR}]")

    console.print()


def status_markup(status_name: str) -> str:
    """Wrap a requirement status name in its color."""
    style = STATUS_STYLES.get(status_name, "white")
    return f"[{style}]{status_name}[/{style}]"
