"""
Terminal presentation helpers.

Every user-facing status line goes through these functions so the commands
share one look: boxed headers, bracketed status tags, menus and key/value rows.
"""
import os

import click

HEADER_WIDTH = 68


def _box(title: str, width: int, colour: str):
    total_padding = max(width - len(title), 0)
    left = total_padding // 2
    right = total_padding - left
    edge = click.style("║", fg=colour, bold=True)

    click.echo()
    click.secho("╔" + "═" * width + "╗", fg=colour, bold=True)
    click.echo(edge + " " * left + click.style(title, fg='cyan') + " " * right + edge)
    click.secho("╚" + "═" * width + "╝", fg=colour, bold=True)
    click.echo()


def print_header(title: str = "Git Control", width: int = HEADER_WIDTH):
    """Print a double-lined box with the title centred inside it."""
    _box(title, width, 'blue')


def print_header_success(title: str, width: int = HEADER_WIDTH):
    _box(title, width, 'green')


def print_info(message: str):
    click.echo(f"{click.style('[INFO]', fg='blue')} {message}")


def print_success(message: str):
    click.echo(f"{click.style('[SUCCESS]', fg='green')} {message}")


def print_warning(message: str):
    click.echo(f"{click.style('[WARNING]', fg='yellow', bold=True)} {message}")


def print_error(message: str):
    click.echo(f"{click.style('[ERROR]', fg='red')} {message}", err=True)


def print_debug(message: str):
    """Only printed when DEBUG is set."""
    if os.getenv("DEBUG", "false").lower() in ("1", "true", "yes"):
        click.echo(f"{click.style('[DEBUG]', fg='cyan')} {message}")


def print_step(message: str):
    click.echo(f"{click.style('▶', fg='cyan')} {message}")


def print_separator(width: int = 60):
    click.secho("─" * width, fg='blue')


def print_kv(key: str, value: str, width: int = 20):
    label = f"{key}:".ljust(width)
    click.echo(f"{click.style(label, fg='cyan')} {value}")


def print_section(title: str):
    click.echo()
    click.secho(title, bold=True)


def print_list_item(text: str):
    click.echo(f"  • {text}")


def print_menu_item(key: str, text: str):
    click.echo(f"  {click.style(key + ')', fg='cyan')} {text}")


def print_command_hint(description: str, command: str):
    click.echo(f"  {description:<20} {click.style(command, fg='green')}")


def confirm(prompt: str = "Continue?", default: bool = False) -> bool:
    return click.confirm(prompt, default=default)
