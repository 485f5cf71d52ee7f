import functools
import json
import logging
import os
import sys
from pathlib import Path

import click

from gitcontrol.autofix import load_alerts, run_autofix
from gitcontrol.config import app_config
from gitcontrol.errors import GitControlError, InputError
from gitcontrol.git import GitClient, GitHubAPI, command_exists
from gitcontrol.licenses import (
    NOASSERTION,
    build_report,
    check_license_compatibility,
    detect_license,
    scan_submodule_licenses,
)
from gitcontrol.mcp_setup import run_mcp_setup
from gitcontrol.models import LicenseInfo, Status
from gitcontrol.output import (
    print_command_hint,
    print_debug,
    print_error,
    print_header,
    print_info,
    print_menu_item,
    print_section,
    print_separator,
    print_success,
    print_warning,
)
from gitcontrol.pr_creator import run_pr_creator

COMMAND_ALIASES = {
    'pull-request': 'pr',
    'security': 'autofix',
    'lic': 'licenses',
    'license': 'licenses',
}

MENU_CHOICES = {
    '1': 'pr',
    '2': 'autofix',
    '3': 'mcp',
    '4': 'licenses',
    'h': 'help',
}

EXIT_CHOICES = ('0', 'q', 'quit', 'exit')


class AliasedGroup(click.Group):
    """Group that resolves command aliases and reports unknown commands."""

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, COMMAND_ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx, args):
        cmd_name = args[0]
        if not cmd_name.startswith('-') and self.get_command(ctx, cmd_name) is None:
            print_error(f"Unknown command: {cmd_name}")
            click.echo("Use 'help' or run with '-h' for available commands", err=True)
            ctx.exit(2)
        return super().resolve_command(ctx, args)


def report_error(error: GitControlError):
    print_error(error.message)
    if error.hint:
        click.echo(f"  {error.hint}", err=True)


def handle_errors(f):
    """Turn a GitControlError into an error line and exit status 1."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except GitControlError as e:
            report_error(e)
            sys.exit(1)

    return wrapper


@click.group(cls=AliasedGroup, invoke_without_command=True,
             context_settings={'help_option_names': ['-h', '--help']})
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, verbose):
    """Git Control - git and GitHub workflow tools"""
    logging.basicConfig(
        level=logging.DEBUG if verbose or app_config.debug else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )
    if ctx.invoked_subcommand is None:
        interactive_menu(ctx)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@cli.command()
@handle_errors
def pr():
    """Create a pull request from the current branch"""
    run_pr_creator()


@cli.command()
@click.argument('repo')
@click.argument('token', required=False)
@click.argument('alerts_file', required=False, type=click.Path())
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@handle_errors
def autofix(repo, token, alerts_file, as_json):
    """Fix CodeQL alerts in the workflows of REPO (owner/repo)

    TOKEN defaults to $GITHUB_TOKEN and ALERTS_FILE to /tmp/alerts.json.
    """
    report = run_autofix_command(repo, token, alerts_file, as_json)
    if report.has_errors:
        sys.exit(1)


@cli.command()
@click.option('--config-only', 'mode', flag_value='config', help='Only write mcp.json')
@click.option('--test', 'mode', flag_value='test', help='Only test an existing mcp.json')
@click.option('--show-token', 'mode', flag_value='token', help='Show the GitHub token in use (masked)')
@handle_errors
def mcp(mode):
    """Set up MCP servers for VS Code"""
    run_mcp_setup(mode or "full")


@cli.command()
@click.argument('directory', required=False, default='.', type=click.Path())
@click.option('--deep', '-d', is_flag=True, help='Scan submodules recursively')
@click.option('--json', '-j', 'as_json', is_flag=True, help='Print the audit as JSON')
@click.option('--check', '-c', 'target_license', metavar='LICENSE',
              help='Check compatibility with a target SPDX license')
@handle_errors
def licenses(directory, deep, as_json, target_license):
    """Audit the license of DIRECTORY and its submodules"""
    if not audit_licenses(directory, deep, as_json, target_license):
        sys.exit(1)


@cli.command(name='help')
@click.pass_context
def help_command(ctx):
    """Show this help message"""
    click.echo(ctx.parent.get_help())


# ---------------------------------------------------------------------------
# Command bodies (shared by the commands and the interactive menu)
# ---------------------------------------------------------------------------

def run_autofix_command(repo: str, token=None, alerts_file=None, as_json: bool = False):
    token = token or app_config.github.token
    alerts_file = alerts_file or app_config.autofix.alerts_file
    echo = (lambda x: None) if as_json else click.echo

    echo(f"🔧 Processing security alerts from {alerts_file}")
    alerts = load_alerts(alerts_file)
    echo(f"Repository: {repo}")
    echo(f"Loaded alerts: {len(alerts)} total")
    if not token:
        echo("⚠ No GitHub token set - API requests are unauthenticated and rate limited")
    echo("")

    api = GitHubAPI(token=token, base_url=app_config.github.api_url,
                    timeout=app_config.github.api_timeout)
    if not as_json:
        print_debug(f"GitHub API: {app_config.github.api_url} (timeout {app_config.github.api_timeout}s)")
    report = run_autofix(alerts, api.resolve_ref, output=echo)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return report

    summary = report.to_dict()['summary']
    click.echo()
    click.echo(f"✓ Total fixes applied: {report.total_fixes}")
    for status in Status:
        count = summary['by_status'][status.value]
        if count > 0:
            click.echo(f"  {status.value}: {count}")

    if report.modified_files:
        click.echo("\nModified files:")
        for path in report.modified_files:
            click.echo(f"  {path}")

    changed = GitClient().changed_files() if command_exists("git") else []
    if changed:
        click.echo("\nUncommitted changes (git diff):")
        for path in changed:
            click.echo(f"  {path}")

    for result in report.results:
        if result.status == Status.ERROR:
            click.echo(f"✗ {result.alert.file or '(no file)'}: {result.detail}", err=True)
    return report


def _license_colour(info: LicenseInfo) -> str:
    if info.spdx_id == NOASSERTION:
        return 'red'
    if info.category == "copyleft-strong":
        return 'yellow'
    return 'green'


def print_license_table(directory: str, root: LicenseInfo, submodules):
    click.secho(f"{'Repository':<40} {'License':<15} {'Source':<18} {'Category':<15}", bold=True)
    print_separator(90)

    name = f"{Path(directory).resolve().name} (root)"
    click.echo(f"{name:<40} {click.style(f'{root.spdx_id:<15}', fg=_license_colour(root))} "
               f"{root.source:<18} {root.category:<15}")

    for sub in submodules:
        click.echo(f"  └── {Path(sub.path).name:<36} "
                   f"{click.style(f'{sub.spdx_id:<15}', fg=_license_colour(sub))} "
                   f"{sub.source:<18} {sub.category:<15}")
    click.echo()


def audit_licenses(directory: str, deep: bool = False, as_json: bool = False,
                   target_license=None) -> bool:
    """
    Detect and print licenses.

    Returns:
        False when a compatibility check was requested and found issues
    """
    if not os.path.isdir(directory):
        raise InputError(f"Directory not found: {directory}")

    if not as_json:
        print_header("Git-Control License Auditor")

    root = detect_license(directory)
    submodules = scan_submodule_licenses(directory, recursive=True) if deep else []

    if as_json:
        click.echo(json.dumps(build_report(root, submodules, deep), indent=2))
    else:
        print_license_table(directory, root, submodules)

    if not target_license:
        return True

    print_section(f"Compatibility Check: {target_license}")
    issues = check_license_compatibility(target_license, [root.spdx_id] + [s.spdx_id for s in submodules])
    if not issues:
        print_success(f"All detected licenses are compatible with {target_license}")
        click.echo()
        return True

    print_error("Compatibility issues found:")
    for issue in issues:
        print_warning(issue)
    click.echo()
    return False


# ---------------------------------------------------------------------------
# Interactive menu
# ---------------------------------------------------------------------------

def display_menu():
    print_header("Git Control")

    click.secho("Collaboration", bold=True)
    print_menu_item("1", "Create Pull Request       - Create PR from branch")
    click.echo()

    click.secho("Security", bold=True)
    print_menu_item("2", "Security Auto-fix         - Fix CodeQL workflow alerts")
    print_menu_item("3", "MCP Setup                 - Configure VS Code MCP servers")
    click.echo()

    click.secho("Maintenance", bold=True)
    print_menu_item("4", "License Auditor           - Audit repository licenses")
    click.echo()

    print_menu_item("h", "Help")
    print_menu_item("0", "Exit")
    click.echo()


def show_quick_tips():
    click.echo()
    print_section("Quick Commands:")
    print_command_hint("Create PR", "gitcontrol pr")
    print_command_hint("Fix security alerts", "gitcontrol autofix OWNER/REPO")
    print_command_hint("Set up MCP", "gitcontrol mcp")
    print_command_hint("Audit licenses", "gitcontrol lic")
    click.echo()


def _default_repo() -> str:
    owner, name = GitClient().repo_owner_and_name()
    return f"{owner}/{name}" if owner and name else ""


def run_menu_choice(ctx, choice: str) -> bool:
    """
    Run one menu selection.

    Returns:
        False when the selection was not recognised
    """
    name = MENU_CHOICES.get(choice, choice)
    name = COMMAND_ALIASES.get(name, name)

    if name == 'help':
        click.echo(ctx.get_help())
    elif name == 'pr':
        run_pr_creator()
    elif name == 'autofix':
        repo = click.prompt("Repository (owner/repo)", default=_default_repo() or None)
        run_autofix_command(repo)
    elif name == 'mcp':
        run_mcp_setup("full")
    elif name == 'licenses':
        audit_licenses('.')
    else:
        print_error(f"Unknown command: {choice}")
        click.echo("Use 'help' or run with '-h' for available commands")
        return False
    return True


def interactive_menu(ctx):
    while True:
        display_menu()
        choice = click.prompt("Select option", default='', show_default=False).strip().lower()
        click.echo()

        if choice in EXIT_CHOICES:
            print_info("Exiting Git Control.")
            show_quick_tips()
            return
        if not choice:
            continue

        try:
            run_menu_choice(ctx, choice)
        except GitControlError as e:
            report_error(e)

        click.echo()
        click.prompt("Press Enter to continue...", default='', show_default=False, prompt_suffix='')


if __name__ == '__main__':
    cli()
