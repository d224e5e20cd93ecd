from __future__ import annotations

from typing import Any

from scheduleguard.schemas.assignment import AssignmentErrorCode, AssignmentIssue
from scheduleguard.schemas.common import SessionKind

COMPONENT_KEYS = {kind.value: kind for kind in SessionKind}
KNOWN_CODES = {code.value: code for code in AssignmentErrorCode}


def _server_issue(entry: Any, component: SessionKind | None) -> AssignmentIssue | None:
    code = AssignmentErrorCode.server_rejection if component else AssignmentErrorCode.general
    if isinstance(entry, dict):
        message = str(entry.get("message") or entry.get("detail") or "").strip()
        reported = KNOWN_CODES.get(str(entry.get("code") or ""))
        if reported is not None and component is not None:
            code = reported
    else:
        message = str(entry or "").strip()
    if not message:
        return None
    return AssignmentIssue(code=code, component=component, message=message, source="server")


def map_server_rejection(body: Any, fallback_message: str = "The server rejected the assignment") -> list[AssignmentIssue]:
    """Translate a commit rejection body into assignment issues.

    Errors keyed by "LEC"/"LAB" are attached to that component; anything the
    server did not tie to a component lands in the General bucket.
    """
    issues: list[AssignmentIssue] = []
    if not isinstance(body, dict):
        return [AssignmentIssue(code=AssignmentErrorCode.general, message=fallback_message, source="server")]

    errors = body.get("errors")
    if isinstance(errors, dict):
        for key, value in errors.items():
            component = COMPONENT_KEYS.get(str(key).strip().upper())
            entries = value if isinstance(value, list) else [value]
            for entry in entries:
                issue = _server_issue(entry, component)
                if issue is not None:
                    issues.append(issue)

    if not issues:
        message = str(body.get("message") or body.get("detail") or fallback_message)
        issues.append(AssignmentIssue(code=AssignmentErrorCode.general, message=message, source="server"))
    return issues
