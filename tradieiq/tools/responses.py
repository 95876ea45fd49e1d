"""
Response assembly shared by the tool handlers.

Every response carries a ``session`` snapshot. Failed actions carry an
``error`` object in the same ``{code, message, retryable}`` shape as
``TradieError.to_dict``; any notification raised by the action is attached
as ``notification``.
"""

from typing import Any, Dict, Optional

from tradieiq.core.app_controller import ActionOutcome, AppController
from tradieiq.models.errors import ErrorCode
from tradieiq.schemas.auth import SessionInfo
from tradieiq.utils.job_renderer import user_display


def session_snapshot(controller: AppController) -> Dict[str, Any]:
    state = controller.state
    return SessionInfo(
        state=state.session_state.value,
        user=user_display(state.identity),
        view=state.view.view.value,
        selected_job_id=state.view.selected_job_id,
        tab=state.view.tab.value,
        is_recording=state.is_recording,
        busy=sorted(state.busy),
    ).model_dump()


def latest_notification(controller: AppController):
    return getattr(controller.notifier, "latest", None)


def outcome_response(
    controller: AppController, outcome: ActionOutcome, before: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Build the tool response for an action outcome.

    Args:
        controller: Controller the action ran against
        outcome: The action's outcome
        before: Latest notification captured before the action ran

    Returns:
        JSON-serializable response dictionary
    """
    response: Dict[str, Any] = {"success": outcome.success}
    response.update(outcome.data)

    if not outcome.success:
        code = outcome.code or ErrorCode.INTERNAL_ERROR
        error: Dict[str, Any] = {
            "code": code.value,
            "message": outcome.message or "",
            "retryable": outcome.retryable,
        }
        if outcome.auth_code is not None:
            error["auth_code"] = outcome.auth_code.value
        response["error"] = error

    latest = latest_notification(controller)
    if latest is not None and latest is not before:
        response["notification"] = latest.to_dict()

    response["session"] = session_snapshot(controller)
    return response
