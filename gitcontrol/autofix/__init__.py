"""
Automated remediation of CodeQL alerts in GitHub Actions workflows.

Two fixes are supported:
- actions/code-injection/medium: move `${{ }}` interpolations out of run
  scripts into step environment variables
- actions/unpinned-tag: pin branch/tag action references to commit SHAs
"""

from .alerts import (
    load_alerts,
)

from .code_injection import (
    WorkflowParseError,
    derive_env_var_name,
    detect_indent,
    extract_expression,
    fix_code_injection,
    free_var_name,
    patch_workflow_text,
)

from .unpinned import (
    Pin,
    find_unpinned_refs,
    pin_actions,
    split_action,
)

from .patcher import (
    apply_alert,
    run_autofix,
)

__all__ = [
    # Alerts
    'load_alerts',
    # Code injection
    'WorkflowParseError',
    'derive_env_var_name',
    'detect_indent',
    'extract_expression',
    'fix_code_injection',
    'free_var_name',
    'patch_workflow_text',
    # Unpinned actions
    'Pin',
    'find_unpinned_refs',
    'pin_actions',
    'split_action',
    # Orchestration
    'apply_alert',
    'run_autofix',
]
