from __future__ import annotations

"""Denial classification for confined command failures.

A confined command can fail for two very different reasons: the command's own
logic failed, or the confinement policy blocked it. Only the second one is
eligible for the unconfined fallback, so the classifier must be conservative
and deterministic. Patterns are matched against the case-folded combined
output (stdout and stderr interleaved).
"""

from typing import Optional

from .models import DenialClassification

GENERIC_DENIAL_REASON = "sandbox policy violation"
REASON_PREVIEW_CHARS = 100


def is_sandbox_denial(output: str, exit_code: Optional[int]) -> bool:
    """
    Decide whether a failed command was blocked by the confinement policy.

    The checks run in a fixed order and the first hit wins:

    1. output mentions both "sandbox" and "deny";
    2. output mentions "operation not permitted";
    3. exit code is exactly 1 and output mentions "permission denied" or
       "not permitted".

    Args:
        output: Combined process output.
        exit_code: Process exit code, or None when the process never ran.

    Returns:
        True when the failure is a policy denial.
    """
    lowered = output.lower()
    if "sandbox" in lowered and "deny" in lowered:
        return True
    if "operation not permitted" in lowered:
        return True
    if exit_code == 1 and ("permission denied" in lowered or "not permitted" in lowered):
        return True
    return False


def extract_denial_reason(output: str) -> str:
    """Derive a short human-readable reason from denial output."""
    lowered = output.lower()
    if "network" in lowered:
        return "network access denied"
    if "write" in lowered or "permission denied" in lowered:
        return "write access denied"
    if "exec" in lowered:
        return "execution denied"
    if "read" in lowered:
        return "read access denied"

    if len(output) > REASON_PREVIEW_CHARS:
        return output[:REASON_PREVIEW_CHARS] + "..."
    if output:
        return output
    return GENERIC_DENIAL_REASON


def classify_denial(output: str, exit_code: Optional[int]) -> DenialClassification:
    """Classify a failed confined command; the reason is only set for denials."""
    if not is_sandbox_denial(output, exit_code):
        return DenialClassification(is_denial=False)
    return DenialClassification(is_denial=True, reason=extract_denial_reason(output))
