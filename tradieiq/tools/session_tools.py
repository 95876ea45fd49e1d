"""
Tool handlers for authentication: session_status, sign_in, sign_up,
sign_in_with_google and sign_out.

Handlers validate the request shape, delegate to the controller and never
raise; failures come back as an ``error`` object.
"""

from typing import Any, Dict

from pydantic import ValidationError

from tradieiq.core.app_controller import AppController
from tradieiq.models.errors import TradieError, create_internal_error
from tradieiq.schemas.auth import CredentialsRequest
from tradieiq.tools.responses import latest_notification, outcome_response, session_snapshot
from tradieiq.utils.pydantic_error_mapper import map_pydantic_validation_error


def session_status(controller: AppController) -> Dict[str, Any]:
    """Current session, view and busy controls."""
    return {"session": session_snapshot(controller)}


def _credentials_action(controller: AppController, args: Dict[str, Any], action) -> Dict[str, Any]:
    try:
        request = CredentialsRequest.model_validate(args)
    except ValidationError as e:
        return map_pydantic_validation_error(e).to_dict()

    before = latest_notification(controller)
    try:
        outcome = action(request.email, request.password)
    except TradieError as e:
        return e.to_dict()
    except Exception as e:
        return create_internal_error(message=str(e), original_error=e).to_dict()
    return outcome_response(controller, outcome, before)


def sign_in(controller: AppController, args: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sign in with email and password.

    Args:
        controller: Application controller
        args: {"email": str, "password": str}

    Returns:
        Outcome with uid/email on success, or an error object whose
        ``auth_code`` is one of user_not_found, wrong_password,
        invalid_email, rate_limited, unknown.
    """
    return _credentials_action(controller, args, controller.sign_in)


def sign_up(controller: AppController, args: Dict[str, Any]) -> Dict[str, Any]:
    """Create an account and sign in. Same argument shape as sign_in."""
    return _credentials_action(controller, args, controller.sign_up)


def sign_in_with_google(controller: AppController) -> Dict[str, Any]:
    before = latest_notification(controller)
    return outcome_response(controller, controller.sign_in_with_google(), before)


def sign_out(controller: AppController) -> Dict[str, Any]:
    before = latest_notification(controller)
    return outcome_response(controller, controller.sign_out(), before)
