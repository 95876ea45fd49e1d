#!/usr/bin/env python3
"""
MCP Server entry point for the TradieIQ client core.

Exposes the TradieIQ session and job workflow (sign in, job list with
aggregates, job detail, create/update/delete) as MCP tools backed by the
local SQLite auth gateway and job store.

Usage:
    python -m tradieiq.server

The server runs in stdio mode by default, which is the standard transport
for MCP servers that are invoked by LLM agents.
"""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from tradieiq.backends.local_auth import google_identity
from tradieiq.config import get_config
from tradieiq.core.app_controller import AppController
from tradieiq.db.auth_store import SqliteAuthGateway
from tradieiq.db.jobs_store import SqliteJobStore
from tradieiq.tools import job_tools, session_tools

logger = logging.getLogger(__name__)

# Create FastMCP server instance
config = get_config()
mcp = FastMCP(
    name=config.server_name,
    instructions=(
        "This server provides the TradieIQ job tracking workflow for a single signed-in user. "
        "\n\n"
        "SESSION:\n"
        "Call session_status first. Use sign_in or sign_up with email and password, "
        "sign_in_with_google when enabled, and sign_out to end the session. "
        "Every job tool requires a signed-in session and is denied otherwise."
        "\n\n"
        "JOBS:\n"
        "Use list_jobs for the dashboard (job rows, totals, active count, total value). "
        "Use create_job, update_job and delete_job to change jobs. "
        "Use select_job to open a job's detail and switch_tab to move between "
        "transcript, summary, tasks and materials. "
        "Use toggle_recording to start or stop a recording timer."
    ),
)

_controller: Optional[AppController] = None


def get_controller() -> AppController:
    """
    Get the process-wide controller, creating and starting it on first use.

    Returns:
        Started AppController backed by the SQLite gateway and store
    """
    global _controller
    if _controller is None:
        db_path = config.get_db_path_str()
        google_account = None
        if config.google_account_email:
            google_account = google_identity(config.google_account_email, config.google_account_name)
        auth = SqliteAuthGateway(
            db_path,
            min_password_length=config.min_password_length,
            max_failed_attempts=config.max_failed_sign_ins,
            lockout_seconds=config.sign_in_lockout_seconds,
            google_account=google_account,
        )
        store = SqliteJobStore(db_path)
        _controller = AppController(auth=auth, store=store, settings=config)
        _controller.start()
    return _controller


@mcp.tool(
    name="session_status",
    description="Return the current session state, signed-in user, active view, selected job and busy controls.",
)
def session_status_tool() -> dict:
    return session_tools.session_status(get_controller())


@mcp.tool(
    name="sign_in",
    description=(
        "Sign in with email and password. "
        "Failures carry an auth_code: user_not_found, wrong_password, invalid_email, rate_limited or unknown."
    ),
)
def sign_in_tool(email: str, password: str) -> dict:
    """
    Sign in with email and password.

    Args:
        email: Account email address
        password: Account password

    Returns:
        Dictionary with success, uid/email on success or an error object,
        the notification shown to the user, and the session snapshot.
    """
    return session_tools.sign_in(get_controller(), {"email": email, "password": password})


@mcp.tool(
    name="sign_up",
    description="Create an account with email and password and sign in to it.",
)
def sign_up_tool(email: str, password: str) -> dict:
    return session_tools.sign_up(get_controller(), {"email": email, "password": password})


@mcp.tool(
    name="sign_in_with_google",
    description="Sign in with the configured Google account. Disabled unless TRADIEIQ_ENABLE_GOOGLE_SIGN_IN is set.",
)
def sign_in_with_google_tool() -> dict:
    return session_tools.sign_in_with_google(get_controller())


@mcp.tool(
    name="sign_out",
    description="Sign out and drop the signed-in user's jobs from memory.",
)
def sign_out_tool() -> dict:
    return session_tools.sign_out(get_controller())


@mcp.tool(
    name="list_jobs",
    description=(
        "Return the signed-in user's jobs (most recently updated first) with display fields, "
        "aggregates (total, active_count, total_value, today_count, by_status) and the selected job."
    ),
)
def list_jobs_tool() -> dict:
    return job_tools.list_jobs(get_controller())


@mcp.tool(
    name="create_job",
    description=(
        "Create a job for the signed-in user. client and address are required; "
        "value defaults to '$0' and status to 'new'. Set open=true to open the job once it is created."
    ),
)
def create_job_tool(
    client: str,
    address: str,
    value: str | None = None,
    status: str | None = None,
    transcript: str | None = None,
    summary: str | None = None,
    tasks: list[str] | None = None,
    materials: list[str] | None = None,
    open: bool = False,
) -> dict:
    """
    Create a job owned by the signed-in user.

    Args:
        client: Client name
        address: Job site address
        value: Display value such as "$1,500" (default: "$0")
        status: new, quoted, in_progress or completed (default: new)
        transcript: Call or site-visit transcript
        summary: Job summary
        tasks: Task list
        materials: Materials list
        open: Open the job's detail view once it reaches the job list

    Returns:
        Dictionary with success and job_id, or an error object.
    """
    args = {"client": client, "address": address, "open": open}
    if value is not None:
        args["value"] = value
    if status is not None:
        args["status"] = status
    if transcript is not None:
        args["transcript"] = transcript
    if summary is not None:
        args["summary"] = summary
    if tasks is not None:
        args["tasks"] = tasks
    if materials is not None:
        args["materials"] = materials

    return job_tools.create_job(get_controller(), args)


@mcp.tool(
    name="update_job",
    description="Update fields of one of the signed-in user's jobs. Only the fields given are changed.",
)
def update_job_tool(
    job_id: str,
    client: str | None = None,
    address: str | None = None,
    value: str | None = None,
    status: str | None = None,
    transcript: str | None = None,
    summary: str | None = None,
    tasks: list[str] | None = None,
    materials: list[str] | None = None,
) -> dict:
    args = {"job_id": job_id}
    for name, given in (
        ("client", client),
        ("address", address),
        ("value", value),
        ("status", status),
        ("transcript", transcript),
        ("summary", summary),
        ("tasks", tasks),
        ("materials", materials),
    ):
        if given is not None:
            args[name] = given

    return job_tools.update_job(get_controller(), args)


@mcp.tool(
    name="delete_job",
    description="Delete one of the signed-in user's jobs.",
)
def delete_job_tool(job_id: str) -> dict:
    return job_tools.delete_job(get_controller(), {"job_id": job_id})


@mcp.tool(
    name="select_job",
    description="Open a job's detail view. A job that is not in the job list is ignored.",
)
def select_job_tool(job_id: str) -> dict:
    return job_tools.select_job(get_controller(), {"job_id": job_id})


@mcp.tool(
    name="switch_tab",
    description="Switch the job detail tab: transcript, summary, tasks or materials.",
)
def switch_tab_tool(tab: str) -> dict:
    return job_tools.switch_tab(get_controller(), {"tab": tab})


@mcp.tool(
    name="toggle_recording",
    description="Start or stop the recording timer. Stopping reports the elapsed time.",
)
def toggle_recording_tool() -> dict:
    return job_tools.toggle_recording(get_controller())


def main():
    """
    Main entry point for the MCP server.

    Runs the server in stdio mode, which is the standard transport
    for MCP servers that are invoked by LLM agents.
    """
    # Load and setup configuration
    config.setup_logging()

    # Log startup information
    logger.info("Starting TradieIQ MCP Server")
    logger.info(f"Server name: {config.server_name}")
    logger.info(f"Database path: {config.db_path}")

    # Validate configuration and log warnings
    warnings = config.validate()
    for warning in warnings:
        logger.warning(warning)

    get_controller()

    # Start the server
    logger.info("Server starting in stdio mode")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
