"""Merge commit statuses and check runs into one overall state."""

from typing import Dict, Iterable, List, Tuple

# Same "severity" as hub(1) for determining the overall state, lowest first
STATE_BY_SEVERITY = [
    "neutral",
    "success",
    "pending",
    "cancelled",
    "timed_out",
    "action_required",
    "failure",
    "error",
]

SUCCESS_STATES = ("neutral", "success")
FAILURE_STATES = ("cancelled", "timed_out", "action_required", "failure", "error")


def check_run_to_status(check_run: Dict) -> Dict:
    """
    Convert a check run from the Checks API to the shape of a status from the
    combined status API: {state, context, target_url}.
    """
    return {
        "state": check_run.get("conclusion")
        if check_run.get("status") == "completed"
        else "pending",
        "context": check_run.get("name") or "",
        "target_url": check_run.get("html_url"),
    }


def combine_statuses(combined_status: Dict, checks_list: Dict) -> List[Dict]:
    """Native statuses followed by converted check runs."""
    return [
        *(combined_status.get("statuses") or []),
        *(check_run_to_status(run) for run in checks_list.get("check_runs") or []),
    ]


def get_state(statuses: Iterable[Dict]) -> str:
    """Highest-severity state among statuses, or "" when there is none."""
    severity = -1
    for status in statuses:
        state = status.get("state")
        if state in STATE_BY_SEVERITY:
            severity = max(severity, STATE_BY_SEVERITY.index(state))
    return STATE_BY_SEVERITY[severity] if severity >= 0 else ""


def state_to_exit_code(state: str) -> int:
    # Same exit codes as `hub ci-status`
    if state in SUCCESS_STATES:
        return 0
    if state in FAILURE_STATES:
        return 1
    if state == "pending":
        return 2
    return 3


def aggregate(combined_status: Dict, checks_list: Dict) -> Tuple[str, int]:
    state = get_state(combine_statuses(combined_status, checks_list))
    return state, state_to_exit_code(state)
