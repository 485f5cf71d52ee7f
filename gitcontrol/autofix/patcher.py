"""
Alert-by-alert orchestration of the workflow fixes.

Each alert is handled in isolation: an unexpected failure is recorded as an
error result for that alert and processing carries on with the next one.
"""
import logging
import os
from typing import Callable, List, Optional

from gitcontrol.autofix.code_injection import (
    WorkflowParseError,
    derive_env_var_name,
    extract_expression,
    fix_code_injection,
)
from gitcontrol.autofix.unpinned import pin_actions
from gitcontrol.models import Alert, AlertResult, AutofixReport, Rule, Status

logger = logging.getLogger(__name__)

Resolver = Callable[[str, str, str], Optional[str]]


def apply_code_injection_fix(alert: Alert, output: Callable[[str], None]) -> AlertResult:
    expression = extract_expression(alert.message)
    if not expression:
        return AlertResult(alert, Status.SKIPPED, detail="No ${{ }} expression in alert message")

    var_name = derive_env_var_name(expression)
    output(f"  📝 Processing {alert.file}: {expression} → {var_name}")

    try:
        patched = fix_code_injection(alert.file, expression)
    except WorkflowParseError as e:
        return AlertResult(alert, Status.ERROR, detail=str(e))

    if not patched:
        output(f"  ⚠ No run step interpolates {expression}; file left unchanged")
        return AlertResult(alert, Status.SKIPPED,
                           detail=f"No run step interpolates ${{{{ {expression} }}}}")

    output("  ✅ Fixed")
    return AlertResult(alert, Status.FIXED, fixes=1,
                       detail=f"Bound {var_name} in {patched} step(s)")


def apply_unpinned_fix(alert: Alert, resolve: Resolver,
                       output: Callable[[str], None]) -> AlertResult:
    pins = pin_actions(alert.file, resolve)
    if not pins:
        return AlertResult(alert, Status.SKIPPED, detail="No resolvable unpinned action references")

    for pin in pins:
        output(f"  ✅ Pinned {pin.action}@{pin.ref} → {pin.sha}")
    return AlertResult(alert, Status.FIXED, fixes=len(pins),
                       detail=", ".join(f"{p.action}@{p.ref}" for p in pins))


def apply_alert(alert: Alert, resolve: Resolver,
                output: Optional[Callable[[str], None]] = None) -> AlertResult:
    """
    Apply the fix matching an alert's rule.

    Returns:
        AlertResult with status fixed, skipped or error
    """
    output = output or (lambda x: None)

    if alert.rule not in (Rule.CODE_INJECTION.value, Rule.UNPINNED_TAG.value):
        return AlertResult(alert, Status.SKIPPED, detail=f"Unsupported rule: {alert.rule or '(none)'}")

    if not alert.file or not os.path.isfile(alert.file):
        return AlertResult(alert, Status.SKIPPED, detail=f"File not found: {alert.file or '(none)'}")

    try:
        if alert.rule == Rule.CODE_INJECTION.value:
            return apply_code_injection_fix(alert, output)
        return apply_unpinned_fix(alert, resolve, output)
    except Exception as e:
        logger.exception("Alert %s on %s failed", alert.rule, alert.file)
        return AlertResult(alert, Status.ERROR, detail=str(e))


def run_autofix(alerts: List[Alert], resolve: Resolver,
                output: Optional[Callable[[str], None]] = None) -> AutofixReport:
    """
    Process all alerts, code-injection fixes first, then action pinning.

    Args:
        alerts: Alert records in file order
        resolve: Callable (owner, repo, ref) -> SHA or None
        output: Optional callback for user messages (e.g., click.echo)

    Returns:
        AutofixReport with one result per alert
    """
    output = output or (lambda x: None)
    report = AutofixReport()

    injection = [a for a in alerts if a.rule == Rule.CODE_INJECTION.value]
    unpinned = [a for a in alerts if a.rule == Rule.UNPINNED_TAG.value]
    other = [a for a in alerts if a.rule not in (Rule.CODE_INJECTION.value, Rule.UNPINNED_TAG.value)]

    output("🔧 Fixing code injection vulnerabilities...")
    output(f"Found {len(injection)} code-injection alerts")
    for alert in injection:
        report.add(apply_alert(alert, resolve, output))

    output("🔧 Fixing unpinned actions...")
    output(f"Found {len(unpinned)} unpinned-tag alerts")
    for alert in unpinned:
        report.add(apply_alert(alert, resolve, output))

    for alert in other:
        report.add(apply_alert(alert, resolve, output))

    return report
