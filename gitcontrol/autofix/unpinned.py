"""
Pinning of mutable action references to commit SHAs.

`uses: actions/checkout@v4` follows whatever the tag points at today; the fix
resolves the tag to its current commit and rewrites the reference to
`uses: actions/checkout@<40-char sha>`.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from gitcontrol.git.github import is_commit_sha

logger = logging.getLogger(__name__)

MUTABLE_REF = r'(?:master|main|v\d+(?:\.\d+)*)'
REF_END = r'''(?=$|[\s"'#])'''

USES_PATTERN = re.compile(
    r'''uses:\s*["']?([^@\s"']+)@(''' + MUTABLE_REF + r')' + REF_END
)


@dataclass
class Pin:
    action: str
    ref: str
    sha: str
    occurrences: int


def split_action(action: str) -> Optional[Tuple[str, str]]:
    """
    Owner and repository of a remote action reference.

    Returns None for local (./path) actions, docker images and bare names
    without an owner/repo separator.
    """
    if action.startswith('./') or action.startswith('docker://'):
        return None
    if '/' not in action:
        return None
    parts = action.split('/')
    owner, repo = parts[0], parts[1]
    if not owner or not repo:
        return None
    return owner, repo


def find_unpinned_refs(content: str) -> List[Tuple[str, str]]:
    """
    Distinct (action, ref) pairs that use a branch or version tag.

    Order follows first appearance in the file.
    """
    found = []
    for line in content.splitlines():
        match = USES_PATTERN.search(line)
        if not match:
            continue
        action, ref = match.group(1), match.group(2)
        if split_action(action) is None:
            continue
        if (action, ref) not in found:
            found.append((action, ref))
    return found


def replace_ref(content: str, action: str, ref: str, sha: str) -> Tuple[str, int]:
    """Swap `<action>@<ref>` for `<action>@<sha>` in every `uses:` line."""
    pattern = re.compile(
        r'''(uses:\s*["']?)''' + re.escape(action) + '@' + re.escape(ref) + REF_END,
        re.MULTILINE
    )
    return pattern.subn(lambda m: f"{m.group(1)}{action}@{sha}", content)


def pin_actions(file_path: str,
                resolve: Callable[[str, str, str], Optional[str]]) -> List[Pin]:
    """
    Pin every mutable action reference in a workflow file.

    Args:
        file_path: Workflow file to rewrite in place
        resolve: Callable (owner, repo, ref) -> validated SHA or None

    Returns:
        One Pin per (action, ref) pair that was rewritten. Pairs whose lookup
        fails are skipped and leave the file unchanged for that reference.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        content = f.read()

    pins = []
    for action, ref in find_unpinned_refs(content):
        owner, repo = split_action(action)
        sha = resolve(owner, repo, ref)
        if not is_commit_sha(sha):
            logger.info("Skipping %s@%s: ref could not be resolved", action, ref)
            continue

        content, count = replace_ref(content, action, ref, sha)
        if count:
            pins.append(Pin(action=action, ref=ref, sha=sha, occurrences=count))

    if pins:
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)
    return pins
