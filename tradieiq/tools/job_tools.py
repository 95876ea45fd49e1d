"""
Tool handlers for jobs: list_jobs, create_job, update_job, delete_job,
select_job, switch_tab and toggle_recording.

Writes are requests to the store; the job list returned by ``list_jobs``
reflects the store's latest push, so a write may take one push to show.
"""

from typing import Any, Dict

from pydantic import ValidationError

from tradieiq.core.app_controller import AppController
from tradieiq.models.errors import TradieError, create_internal_error
from tradieiq.models.status import JobStatus, ViewName
from tradieiq.schemas.jobs import (
    CreateJobRequest,
    JobAggregatesInfo,
    JobIdRequest,
    JobListItem,
    SwitchTabRequest,
    UpdateJobRequest,
)
from tradieiq.tools.responses import latest_notification, outcome_response, session_snapshot
from tradieiq.utils.job_renderer import job_detail, render_job_list
from tradieiq.utils.pydantic_error_mapper import map_pydantic_validation_error


def list_jobs(controller: AppController) -> Dict[str, Any]:
    """
    Dashboard data: job list rows, aggregates and the selected job.

    Requires a signed-in session; otherwise the dashboard request is denied
    and the sign-in screen is forced.
    """
    if not controller.session.is_signed_in:
        before = latest_notification(controller)
        return outcome_response(controller, controller.show_view(ViewName.DASHBOARD.value), before)

    state = controller.state
    now = controller.now()
    rows = [
        JobListItem(**row).model_dump()
        for row in render_job_list(state.jobs, now=now, selected_id=state.view.selected_job_id)
    ]
    selected = controller.views.selected_job
    return {
        "success": True,
        "jobs": rows,
        "aggregates": JobAggregatesInfo(**state.aggregates.to_dict()).model_dump(),
        "selected_job": job_detail(selected) if selected is not None else None,
        "session": session_snapshot(controller),
    }


def create_job(controller: AppController, args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a job owned by the signed-in user.

    Args:
        controller: Application controller
        args: Dictionary containing:
            - client (str): Client name (required, non-blank)
            - address (str): Job address (required, non-blank)
            - value (str, optional): Display value such as "$1,500" (default "$0")
            - status (str, optional): new | quoted | in_progress | completed (default new)
            - transcript, summary (str, optional)
            - tasks, materials (list[str], optional)
            - open (bool, optional): Open the job once it reaches the cache

    Returns:
        Outcome with job_id on success
    """
    try:
        request = CreateJobRequest.model_validate(args)
    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    before = latest_notification(controller)
    fields = dict(
        client=request.client,
        address=request.address,
        value=request.value,
        status=JobStatus(request.status or JobStatus.NEW.value),
        transcript=request.transcript or "",
        summary=request.summary or "",
        tasks=request.tasks,
        materials=request.materials,
    )
    try:
        if request.open:
            outcome = controller.create_new_job(**fields)
        else:
            outcome = controller.create_job(**fields)
    except TradieError as e:
        return e.to_dict()
    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
    return outcome_response(controller, outcome, before)


def update_job(controller: AppController, args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Patch fields of a cached job.

    Args:
        controller: Application controller
        args: {"job_id": str, ...any of client, address, value, status,
              transcript, summary, tasks, materials}

    Returns:
        Outcome listing the fields sent to the store
    """
    try:
        request = UpdateJobRequest.model_validate(args)
    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    before = latest_notification(controller)
    outcome = controller.update_job(request.job_id, **request.changes())
    return outcome_response(controller, outcome, before)


def delete_job(controller: AppController, args: Dict[str, Any]) -> Dict[str, Any]:
    try:
        request = JobIdRequest.model_validate(args)
    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    before = latest_notification(controller)
    return outcome_response(controller, controller.delete_job(request.job_id), before)


def select_job(controller: AppController, args: Dict[str, Any]) -> Dict[str, Any]:
    """Open a job's detail screen; a job not in the cache is ignored (selected=false)."""
    try:
        request = JobIdRequest.model_validate(args)
    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    before = latest_notification(controller)
    outcome = controller.select_job(request.job_id)
    response = outcome_response(controller, outcome, before)
    selected = controller.views.selected_job
    if outcome.success and selected is not None:
        response["job"] = job_detail(selected)
    return response


def switch_tab(controller: AppController, args: Dict[str, Any]) -> Dict[str, Any]:
    try:
        request = SwitchTabRequest.model_validate(args)
    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    before = latest_notification(controller)
    return outcome_response(controller, controller.switch_tab(request.tab), before)


def toggle_recording(controller: AppController) -> Dict[str, Any]:
    before = latest_notification(controller)
    return outcome_response(controller, controller.toggle_recording(), before)
