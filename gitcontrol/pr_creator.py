"""
Interactive pull request creation for the current branch.

Flow: prerequisites → branch checks → prompts → confirm → push if the branch
is not on origin yet → `gh pr create` → best-effort label → summary.
"""
from typing import Optional

import click

from gitcontrol.errors import InputError
from gitcontrol.git import GitClient, GitHubCLI, require_tool
from gitcontrol.models import PullRequestSpec
from gitcontrol.output import (
    confirm,
    print_header,
    print_header_success,
    print_info,
    print_kv,
    print_menu_item,
    print_success,
    print_warning,
)


PROTECTED_BRANCHES = ("main", "master")

BASE_CHOICES = {
    '1': 'main',
    '2': 'master',
    '3': 'develop',
}

PR_TYPES = [
    ('1', '🐛 Bug fix', 'bug'),
    ('2', '✨ New feature', 'enhancement'),
    ('3', '📚 Documentation', 'documentation'),
    ('4', '🔧 Refactoring', 'refactoring'),
    ('5', '🧪 Tests', 'tests'),
]


def check_prerequisites(gh: GitHubCLI):
    gh.require_ready()
    require_tool("git", hint="Install git from https://git-scm.com/")


def check_git_status(git: GitClient) -> str:
    """
    Validate the repository state and return the current branch.

    Raises:
        InputError: Not a repository, on a protected branch, or no origin remote
    """
    if not git.in_worktree():
        raise InputError("Not a git repository.")

    branch = git.current_branch()
    if branch in PROTECTED_BRANCHES:
        raise InputError("You are on the main branch. Create a feature branch first.")

    if git.has_unstaged_changes():
        print_warning("You have uncommitted changes.")
        if confirm("Commit changes first?", default=True):
            message = click.prompt("Commit message")
            git.commit_all(message)
    else:
        print_warning("No uncommitted changes.")

    if not git.remote_url():
        raise InputError("No remote 'origin' configured.")

    print_info(f"Current branch: {click.style(branch, fg='cyan')}")
    click.echo()
    return branch


def _read_body() -> str:
    click.echo()
    click.echo("Description (press Enter twice to finish):")
    lines = []
    while True:
        line = click.prompt('', default='', show_default=False, prompt_suffix='')
        if not line:
            break
        lines.append(line)
    return "\n".join(lines)


def _choose_base() -> str:
    click.echo()
    click.echo("Target base branch:")
    print_menu_item('1', "main (default)")
    print_menu_item('2', "master")
    print_menu_item('3', "develop")
    print_menu_item('4', "Other")
    choice = click.prompt("Choice", default='1')

    if choice == '4':
        return click.prompt("Enter branch name")
    return BASE_CHOICES.get(choice, 'main')


def _choose_label() -> str:
    click.echo()
    click.echo("PR Type:")
    for key, text, _ in PR_TYPES:
        print_menu_item(key, text)
    choice = click.prompt("Choice", default='1')

    for key, _, label in PR_TYPES:
        if key == choice:
            return label
    return 'bug'


def collect_pr_info(branch: str) -> PullRequestSpec:
    click.secho("Pull Request Details\n", bold=True)

    title = click.prompt("PR Title", default='', show_default=False).strip()
    if not title:
        raise InputError("Title is required.")

    body = _read_body()
    base = _choose_base()
    label = _choose_label()

    click.echo()
    click.echo("Options:")
    issue = click.prompt("Link an issue? Enter issue number (or press Enter to skip)",
                         default='', show_default=False).strip().lstrip('#')
    draft = confirm("Mark as draft?", default=False)
    click.echo()

    return PullRequestSpec(
        title=title,
        head=branch,
        base=base,
        body=body,
        label=label,
        issue=issue or None,
        draft=draft
    )


def push_branch(git: GitClient, branch: str):
    if git.remote_branch_exists(branch):
        print_info("Branch already exists on remote.")
        return

    print_info("Pushing branch to remote...")
    git.push(branch)
    print_success("Branch pushed!")


def create_pull_request(gh: GitHubCLI, spec: PullRequestSpec) -> dict:
    """
    Create the PR and apply its label.

    Returns:
        dict with 'pr_url' and 'label_applied'

    Raises:
        CommandError: If `gh pr create` fails
    """
    print_info("Creating pull request...")
    output = gh.create_pr(spec.gh_args())
    print_success("Pull request created!")

    pr_url = gh.pr_url(spec.head) or output

    label_applied = False
    if spec.label:
        print_info(f"Adding label: {spec.label}")
        label_applied = gh.add_label(spec.head, spec.label)
        if not label_applied:
            print_warning("Could not add label (label may not exist in repository)")

    return {
        'pr_url': pr_url,
        'label_applied': label_applied,
    }


def show_summary(spec: PullRequestSpec, pr_url: str):
    print_header_success("Pull Request Created!", width=62)
    click.secho("PR Details:", bold=True)
    click.echo(f"  • {click.style('Title:', fg='cyan')}       {spec.title}")
    click.echo(f"  • {click.style('Branch:', fg='cyan')}      {spec.head} → {spec.base}")
    click.echo(f"  • {click.style('Label:', fg='cyan')}       {spec.label}")
    if spec.issue:
        click.echo(f"  • {click.style('Issue:', fg='cyan')}       #{spec.issue}")
    if spec.draft:
        click.echo(f"  • {click.style('Status:', fg='cyan')}      Draft")
    click.echo()
    click.secho("Quick Commands:", bold=True)
    click.echo(f"  {click.style('gh pr view --web', fg='green')}      - Open in browser")
    click.echo(f"  {click.style('gh pr status', fg='green')}         - Check PR status")
    click.echo(f"  {click.style('gh pr merge', fg='green')}          - Merge PR")
    click.echo()
    if pr_url:
        click.echo(f"  {click.style('URL:', fg='cyan')} {pr_url}")
    click.echo()


def run_pr_creator(git: Optional[GitClient] = None, gh: Optional[GitHubCLI] = None) -> Optional[dict]:
    """
    Run the whole interactive flow.

    Returns:
        Result dict from create_pull_request, or None when cancelled
    """
    git = git or GitClient()
    gh = gh or GitHubCLI()

    print_header("Git-Control Pull Request Creator")
    check_prerequisites(gh)
    branch = check_git_status(git)
    spec = collect_pr_info(branch)

    click.secho("Ready to create PR:", bold=True)
    print_kv("Branch", f"{spec.head} → {spec.base}", width=8)
    print_kv("Title", spec.title, width=8)
    click.echo()
    if not confirm("Proceed?", default=True):
        print_info("Cancelled.")
        return None

    click.echo()
    push_branch(git, branch)
    result = create_pull_request(gh, spec)
    show_summary(spec, result['pr_url'])
    return result
