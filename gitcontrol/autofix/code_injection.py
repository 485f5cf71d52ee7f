"""
Code-injection remediation for GitHub Actions workflows.

An untrusted `${{ <expr> }}` interpolated straight into a step's `run` script
is moved into an environment binding on that step, and the script refers to
the variable instead:

    run: echo ${{ github.event.head_commit.message }}

becomes

    env:
      FIX_GITHUB_EVENT_HEAD_COMMIT_MES: ${{ github.event.head_commit.message }}
    run: echo $FIX_GITHUB_EVENT_HEAD_COMMIT_MES

The workflow is edited as a YAML document (ruamel round-trip mode keeps key
order, comments and quoting), so the binding always lands on the step that
owns the rewritten command.
"""
import re
from io import StringIO
from typing import Iterator, Optional

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

VAR_PREFIX = "FIX_"
MAX_VAR_LENGTH = 32

MESSAGE_EXPRESSION_PATTERN = re.compile(r'\$\{\{\s*([^}]+?)\s*\}\}')


class WorkflowParseError(ValueError):
    """The workflow file is not a YAML document we can edit."""


def extract_expression(message: str) -> Optional[str]:
    """
    Pull the first `${{ ... }}` expression out of an alert message.

    Returns:
        The inner expression with surrounding whitespace trimmed, or None
    """
    if not message:
        return None
    match = MESSAGE_EXPRESSION_PATTERN.search(message)
    if not match:
        return None
    expression = match.group(1).strip()
    return expression or None


def derive_env_var_name(expression: str) -> str:
    """
    Deterministic environment variable name for an expression.

    Example:
        "github.head_ref" -> "FIX_GITHUB_HEAD_REF"
        "github.event.head_commit.message" -> "FIX_GITHUB_EVENT_HEAD_COMMIT_MES"
        (truncated to 32 characters overall)
    """
    sanitized = re.sub(r'[^a-zA-Z0-9_]', '_', expression.strip()).upper()
    return (VAR_PREFIX + sanitized)[:MAX_VAR_LENGTH]


def interpolation_pattern(expression: str) -> re.Pattern:
    """Matches `${{ expression }}` with any amount of inner whitespace."""
    return re.compile(r'\$\{\{\s*' + re.escape(expression) + r'\s*\}\}')


KEY_LINE_PATTERN = re.compile(r'^(\s*)(-\s+)?[^\s#-][^#]*?:\s*(#.*)?$')
SEQUENCE_ITEM_PATTERN = re.compile(r'^(\s*)-(\s+)\S')
DEFAULT_INDENT = (2, 4, 2)


def detect_indent(content: str) -> tuple[int, int, int]:
    """
    Block indentation used by a YAML document.

    Returns:
        (mapping, sequence, offset) in ruamel's terms, falling back to
        DEFAULT_INDENT for whatever the document does not show
    """
    mapping = sequence = offset = None
    parent_col = None

    for line in content.splitlines():
        if not line.strip() or line.lstrip().startswith('#'):
            continue

        if parent_col is not None:
            item = SEQUENCE_ITEM_PATTERN.match(line)
            indent = len(line) - len(line.lstrip())
            if item and sequence is None and indent >= parent_col:
                offset = indent - parent_col
                sequence = offset + 1 + len(item.group(2))
            elif not item and mapping is None and indent > parent_col:
                mapping = indent - parent_col

        key = KEY_LINE_PATTERN.match(line)
        parent_col = len(key.group(1)) + len(key.group(2) or '') if key else None

        if mapping is not None and sequence is not None:
            break

    default_mapping, default_sequence, default_offset = DEFAULT_INDENT
    if sequence is None:
        return mapping or default_mapping, default_sequence, default_offset
    return mapping or default_mapping, sequence, offset


def _workflow_yaml(content: str) -> YAML:
    yaml = YAML()
    mapping, sequence, offset = detect_indent(content)
    yaml.indent(mapping=mapping, sequence=sequence, offset=offset)
    yaml.preserve_quotes = True
    yaml.width = 4096
    yaml.explicit_start = content.startswith('---')
    return yaml


def _iter_steps(document) -> Iterator[CommentedMap]:
    """Step mappings of a workflow (jobs.*.steps) or composite action (runs.steps)."""
    if not isinstance(document, dict):
        return

    jobs = document.get('jobs')
    if isinstance(jobs, dict):
        for job in jobs.values():
            if isinstance(job, dict) and isinstance(job.get('steps'), list):
                for step in job['steps']:
                    if isinstance(step, dict):
                        yield step

    runs = document.get('runs')
    if isinstance(runs, dict) and isinstance(runs.get('steps'), list):
        for step in runs['steps']:
            if isinstance(step, dict):
                yield step


def free_var_name(env: dict, var_name: str, expression: str) -> str:
    """
    Name under which `expression` can be bound in `env`.

    Truncation lets different expressions share a name, so a name already
    bound to another value gets a numeric suffix, still within
    MAX_VAR_LENGTH. A name already bound to this expression is reused.
    """
    pattern = interpolation_pattern(expression)
    candidate = var_name
    counter = 2
    while candidate in env:
        if pattern.fullmatch(str(env[candidate]).strip()):
            return candidate
        suffix = f"_{counter}"
        candidate = var_name[:MAX_VAR_LENGTH - len(suffix)].rstrip('_') + suffix
        counter += 1
    return candidate


def _bind_env(step: CommentedMap, var_name: str, expression: str) -> Optional[str]:
    """
    Bind the expression in the step's env, creating env just before run.

    Returns:
        The variable name bound, or None when env cannot be merged into
    """
    binding = "${{ " + expression + " }}"
    if 'env' in step:
        env = step['env']
        if env is None:
            env = CommentedMap()
            step['env'] = env
        if not isinstance(env, dict):
            # env given as a single expression; nothing to merge into
            return None
        var_name = free_var_name(env, var_name, expression)
        env[var_name] = binding
        return var_name

    env = CommentedMap()
    env[var_name] = binding
    step.insert(list(step.keys()).index('run'), 'env', env)
    return var_name


def patch_workflow_text(content: str, expression: str) -> tuple[str, int]:
    """
    Rewrite every step whose run script interpolates `expression`.

    Args:
        content: Workflow file content
        expression: The untrusted expression, without the `${{ }}` wrapper

    Returns:
        (new_content, steps_patched). Content is returned unchanged when no
        step qualifies, so a file is never left with an unbound variable.

    Raises:
        WorkflowParseError: If content is not parseable YAML
    """
    yaml = _workflow_yaml(content)
    try:
        document = yaml.load(content)
    except YAMLError as e:
        raise WorkflowParseError(f"Invalid workflow YAML: {e}")

    var_name = derive_env_var_name(expression)
    pattern = interpolation_pattern(expression)
    patched = 0

    for step in _iter_steps(document):
        script = step.get('run')
        if not isinstance(script, str) or not pattern.search(script):
            continue
        bound_name = _bind_env(step, var_name, expression)
        if bound_name is None:
            continue
        rewritten = pattern.sub(lambda _: "$" + bound_name, script)
        # type(script) keeps literal/folded/quoted scalar styles
        step['run'] = type(script)(rewritten)
        patched += 1

    if not patched:
        return content, 0

    buffer = StringIO()
    yaml.dump(document, buffer)
    return buffer.getvalue(), patched


def fix_code_injection(file_path: str, expression: str) -> int:
    """
    Apply the env-binding fix to a workflow file in place.

    Returns:
        Number of steps rewritten (0 leaves the file untouched)

    Raises:
        FileNotFoundError: If the file does not exist
        WorkflowParseError: If the file is not valid YAML
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        content = f.read()

    updated, patched = patch_workflow_text(content, expression)
    if patched:
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(updated)
    return patched
