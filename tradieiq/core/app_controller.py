"""
Application controller for the TradieIQ client.

Owns the session store, job cache and view controller, and is the single
entry point through which auth notifications, store pushes and user
actions change application state.

Flow:
    auth gateway change -> SessionStore.apply -> ViewController
        -> (signed in) JobCache.activate(uid) -> store pushes
        -> JobCache replace -> ViewController.reconcile -> Renderer.render

User actions never touch the job cache directly. Writes go to the store
and become visible with the store's next push.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional, Set

from pydantic import ValidationError

from tradieiq.backends.protocols import AuthGateway, JobStore, Notifier, Renderer
from tradieiq.config import Config, get_config
from tradieiq.core.aggregates import JobAggregates, compute_aggregates
from tradieiq.core.job_cache import JobCache, JobSnapshot
from tradieiq.core.notifications import Notification, NotificationLog
from tradieiq.core.session_store import SessionStore
from tradieiq.core.subscription import Subscription
from tradieiq.core.view_controller import ViewController, ViewState
from tradieiq.models.errors import (
    AccessDenied,
    AuthError,
    AuthErrorCode,
    ErrorCode,
    TradieError,
    auth_error_message,
    create_access_denied_error,
    create_feature_disabled_error,
    create_internal_error,
    create_validation_error,
)
from tradieiq.models.job import DEFAULT_VALUE, JobDraft, JobUpdate
from tradieiq.models.session import Identity
from tradieiq.models.status import JobStatus, JobTab, SessionState, ViewName
from tradieiq.utils.job_renderer import format_duration
from tradieiq.utils.pydantic_error_mapper import map_pydantic_validation_error
from tradieiq.utils.validation import validate_credentials_present, validate_new_password

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of one user action: success flag plus the classified failure."""

    success: bool
    code: Optional[ErrorCode] = None
    auth_code: Optional[AuthErrorCode] = None
    message: Optional[str] = None
    retryable: bool = False
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: Optional[str] = None, **data: Any) -> "ActionOutcome":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failed(cls, error: TradieError, message: Optional[str] = None) -> "ActionOutcome":
        return cls(
            success=False,
            code=error.code,
            auth_code=getattr(error, "auth_code", None),
            message=message or error.message,
            retryable=error.retryable,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.code is not None:
            result["code"] = self.code.value
        if self.auth_code is not None:
            result["auth_code"] = self.auth_code.value
        if self.message is not None:
            result["message"] = self.message
        if not self.success:
            result["retryable"] = self.retryable
        result.update(self.data)
        return result


@dataclass(frozen=True)
class AppState:
    """Point-in-time view of everything the controller owns."""

    session_state: SessionState
    identity: Optional[Identity]
    view: ViewState
    jobs: JobSnapshot
    aggregates: JobAggregates
    is_recording: bool
    recording_started_at: Optional[datetime]
    busy: FrozenSet[str]


class AppController:
    """Wires the auth gateway and job store to the session, cache and views."""

    def __init__(
        self,
        auth: AuthGateway,
        store: JobStore,
        renderer: Optional[Renderer] = None,
        notifier: Optional[Notifier] = None,
        settings: Optional[Config] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._auth = auth
        self._store = store
        self._renderer = renderer
        self.notifier = notifier if notifier is not None else NotificationLog()
        self.settings = settings if settings is not None else get_config()
        self._clock = clock

        self.session = SessionStore()
        self.cache = JobCache(store)
        self.views = ViewController(self.session, self.cache)

        self._auth_subscription: Optional[Subscription] = None
        self._cache_subscription = self.cache.listen(self._on_jobs_replaced)
        self._busy: Set[str] = set()
        self._recording_started_at: Optional[datetime] = None
        self._pending_selection: Optional[str] = None
        self._redraw_holds = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Subscribe to auth changes. The first notification ends LOADING."""
        if self._auth_subscription is not None and self._auth_subscription.active:
            return
        logger.info("Starting TradieIQ controller")
        self._auth_subscription = self._auth.on_change(self._on_auth_change)

    def stop(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.cancel()
            self._auth_subscription = None
        self.cache.deactivate()
        logger.info("Stopped TradieIQ controller")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    def now(self) -> datetime:
        """Current time from the injected clock."""
        return self._clock()

    @property
    def aggregates(self) -> JobAggregates:
        today = self.now().astimezone(timezone.utc).date()
        return compute_aggregates(self.cache.jobs, today=today)

    @property
    def state(self) -> AppState:
        return AppState(
            session_state=self.session.state,
            identity=self.session.identity,
            view=self.views.state,
            jobs=self.cache.jobs,
            aggregates=self.aggregates,
            is_recording=self._recording_started_at is not None,
            recording_started_at=self._recording_started_at,
            busy=frozenset(self._busy),
        )

    def is_busy(self, control: str) -> bool:
        return control in self._busy

    # ------------------------------------------------------------------
    # Push handlers
    # ------------------------------------------------------------------
    def _on_auth_change(self, identity: Optional[Identity]) -> None:
        with self._held_redraw():
            transition = self.session.apply(identity)

            if transition.identity_changed:
                self.cache.deactivate()
                self._reset_workspace()

            self.views.on_session_change(transition)

            if identity is not None and transition.identity_changed:
                try:
                    self.cache.activate(identity.uid)
                except TradieError as e:
                    logger.error(f"Failed to subscribe to jobs: {e.message}")
                    self._notify("Error", "Failed to load your data")
        self._redraw()

    def _on_jobs_replaced(self, jobs: JobSnapshot) -> None:
        self.views.reconcile(jobs)

        pending = self._pending_selection
        if pending is not None and any(job.id == pending for job in jobs):
            self._pending_selection = None
            if self.session.is_signed_in:
                self.views.select_job(pending)

        self._redraw()

    # ------------------------------------------------------------------
    # Authentication actions
    # ------------------------------------------------------------------
    def sign_in(self, email: str, password: str) -> ActionOutcome:
        try:
            email = validate_credentials_present(email, password)
        except TradieError as e:
            self._notify("Error", e.message)
            return ActionOutcome.failed(e)

        with self._busy_control("sign_in"):
            try:
                identity = self._auth.sign_in(email, password)
            except AuthError as e:
                logger.warning(f"Sign in failed for {email}: {e.auth_code.value}")
                message = auth_error_message(e.auth_code, "sign_in")
                self._notify("Sign In Failed", message)
                return ActionOutcome.failed(e, message)
            except Exception as e:
                return self._unexpected("sign in", e)

        # Screen changes wait for the gateway notification.
        self._notify("Welcome back!", f"Signed in as {email}")
        return ActionOutcome.ok(uid=identity.uid, email=identity.email)

    def sign_up(self, email: str, password: str) -> ActionOutcome:
        try:
            email = validate_credentials_present(email, password)
            validate_new_password(password, self.settings.min_password_length)
        except TradieError as e:
            self._notify("Error", e.message)
            return ActionOutcome.failed(e)

        with self._busy_control("sign_up"):
            try:
                identity = self._auth.sign_up(email, password)
            except AuthError as e:
                logger.warning(f"Sign up failed for {email}: {e.auth_code.value}")
                message = auth_error_message(e.auth_code, "sign_up")
                self._notify("Sign Up Failed", message)
                return ActionOutcome.failed(e, message)
            except Exception as e:
                return self._unexpected("sign up", e)

        self._notify("Account Created!", f"Welcome to TradieIQ, {email}")
        return ActionOutcome.ok(uid=identity.uid, email=identity.email)

    def sign_in_with_google(self) -> ActionOutcome:
        if not self.settings.enable_google_sign_in:
            error = create_feature_disabled_error("Google sign-in")
            self._notify("Error", error.message)
            return ActionOutcome.failed(error)

        with self._busy_control("google_sign_in"):
            try:
                identity = self._auth.sign_in_with_google()
            except AuthError as e:
                logger.warning(f"Google sign in failed: {e.auth_code.value}")
                message = auth_error_message(e.auth_code, "sign_in")
                self._notify("Sign In Failed", message)
                return ActionOutcome.failed(e, message)
            except Exception as e:
                return self._unexpected("Google sign in", e)

        self._notify("Welcome back!", f"Signed in as {identity.email}")
        return ActionOutcome.ok(uid=identity.uid, email=identity.email)

    def sign_out(self) -> ActionOutcome:
        if not self.session.is_signed_in:
            return ActionOutcome.failed(create_access_denied_error("Not signed in"))

        with self._busy_control("sign_out"):
            try:
                self._auth.sign_out()
            except AuthError as e:
                logger.warning(f"Sign out failed: {e.auth_code.value}")
                message = auth_error_message(e.auth_code, "sign_out")
                self._notify("Error", message)
                return ActionOutcome.failed(e, message)
            except Exception as e:
                return self._unexpected("sign out", e)

        # Drop the user's data now rather than waiting for the notification.
        self.cache.deactivate()
        self._reset_workspace()
        self._notify("Signed Out", "You have been signed out successfully")
        return ActionOutcome.ok()

    # ------------------------------------------------------------------
    # Job actions
    # ------------------------------------------------------------------
    def create_job(
        self,
        client: str,
        address: str,
        value: str = DEFAULT_VALUE,
        status: JobStatus = JobStatus.NEW,
        transcript: str = "",
        summary: str = "",
        tasks: Optional[Iterable[str]] = None,
        materials: Optional[Iterable[str]] = None,
    ) -> ActionOutcome:
        """Send a new job to the store. It shows up with the next push."""
        try:
            self.views.require_signed_in("Please sign in to create jobs")
        except AccessDenied as e:
            return self._denied(e)

        now = self._clock()
        try:
            draft = JobDraft(
                owner_id=self.session.identity.uid,
                client=client,
                address=address,
                value=DEFAULT_VALUE if value is None else value,
                status=status,
                transcript=transcript,
                summary=summary,
                tasks=list(tasks or []),
                materials=list(materials or []),
                created_at=now,
                updated_at=now,
            )
        except ValidationError as e:
            return self._invalid(map_pydantic_validation_error(e))

        try:
            job_id = self._store.create(draft)
        except TradieError as e:
            logger.error(f"Failed to create job: {e.message}")
            self._notify("Error", "Failed to create job")
            return ActionOutcome.failed(e)
        except Exception as e:
            return self._unexpected("create job", e)

        logger.info(f"Created job {job_id}")
        self._notify("Job Created", "New job has been created successfully")
        return ActionOutcome.ok(job_id=job_id)

    def create_new_job(self, client: str, address: str, **fields: Any) -> ActionOutcome:
        """
        Create a job (defaults for anything not given) and open it.

        The selection is applied as soon as the job appears in the cache,
        which may be a later push than the one following the write.
        """
        outcome = self.create_job(client=client, address=address, **fields)
        if not outcome.success:
            return outcome

        job_id = outcome.data["job_id"]
        if job_id in self.cache:
            self.views.select_job(job_id)
            self._redraw()
            selected = True
        else:
            self._pending_selection = job_id
            selected = False
        return ActionOutcome.ok(job_id=job_id, selected=selected)

    def update_job(self, job_id: str, **fields: Any) -> ActionOutcome:
        try:
            self.views.require_signed_in("You must be signed in to update jobs")
            self._require_cached(job_id)
        except AccessDenied as e:
            return self._denied(e)

        try:
            patch = JobUpdate(**fields).to_fields()
        except ValidationError as e:
            return self._invalid(map_pydantic_validation_error(e))
        if not patch:
            return self._invalid(create_validation_error("No changes to save"))

        patch["updated_at"] = self._clock()
        try:
            self._store.update(job_id, patch)
        except TradieError as e:
            logger.error(f"Failed to update job {job_id}: {e.message}")
            self._notify("Error", "Failed to save changes")
            return ActionOutcome.failed(e)
        except Exception as e:
            return self._unexpected("update job", e)

        self._notify("Job Updated", "Changes saved successfully")
        return ActionOutcome.ok(job_id=job_id, fields=sorted(patch))

    def delete_job(self, job_id: str) -> ActionOutcome:
        try:
            self.views.require_signed_in("You must be signed in to delete jobs")
            self._require_cached(job_id)
        except AccessDenied as e:
            return self._denied(e)

        try:
            self._store.delete(job_id)
        except TradieError as e:
            logger.error(f"Failed to delete job {job_id}: {e.message}")
            self._notify("Error", "Failed to delete job")
            return ActionOutcome.failed(e)
        except Exception as e:
            return self._unexpected("delete job", e)

        if self._pending_selection == job_id:
            self._pending_selection = None
        self._notify("Job Deleted", "Job has been removed")
        return ActionOutcome.ok(job_id=job_id)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def show_view(self, view: str) -> ActionOutcome:
        try:
            target = ViewName(view)
        except ValueError:
            return self._invalid(create_validation_error(f"Invalid view: {view}"))
        try:
            state = self.views.show(target)
        except AccessDenied as e:
            return self._denied(e)
        self._redraw()
        return ActionOutcome.ok(view=state.view.value)

    def select_job(self, job_id: str) -> ActionOutcome:
        """Open a job. A job missing from the cache is ignored."""
        try:
            selected = self.views.select_job(job_id)
        except AccessDenied as e:
            return self._denied(e)
        if selected:
            self._redraw()
        return ActionOutcome.ok(job_id=job_id, selected=selected)

    def switch_tab(self, tab: str) -> ActionOutcome:
        try:
            self.views.require_signed_in("Please sign in to access this feature")
        except AccessDenied as e:
            return self._denied(e)
        try:
            target = JobTab(tab)
        except ValueError:
            return self._invalid(create_validation_error(f"Invalid tab: {tab}"))
        state = self.views.switch_tab(target)
        self._redraw()
        return ActionOutcome.ok(tab=state.tab.value)

    def toggle_recording(self) -> ActionOutcome:
        if not self.settings.enable_recording:
            error = create_feature_disabled_error("Recording")
            self._notify("Error", error.message)
            return ActionOutcome.failed(error)
        try:
            self.views.require_signed_in("Please sign in to use recording features")
        except AccessDenied as e:
            return self._denied(e)

        now = self._clock()
        if self._recording_started_at is None:
            self._recording_started_at = now
            self._notify("Recording", "Recording started")
            self._redraw()
            return ActionOutcome.ok(recording=True)

        elapsed = max(0.0, (now - self._recording_started_at).total_seconds())
        self._recording_started_at = None
        self._notify("Recording", f"Recording stopped ({format_duration(elapsed)})")
        self._redraw()
        return ActionOutcome.ok(recording=False, elapsed_seconds=elapsed)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_cached(self, job_id: str) -> None:
        if job_id not in self.cache:
            raise create_access_denied_error("You do not have access to this job")

    def _reset_workspace(self) -> None:
        self._pending_selection = None
        self._recording_started_at = None

    def _notify(self, title: str, message: str) -> None:
        self.notifier.notify(Notification(title, message, self.settings.notification_ms))

    def _denied(self, error: AccessDenied) -> ActionOutcome:
        self._notify("Access Denied", error.message)
        self._redraw()
        return ActionOutcome.failed(error)

    def _invalid(self, error: TradieError) -> ActionOutcome:
        self._notify("Error", error.message)
        return ActionOutcome.failed(error)

    def _unexpected(self, action: str, error: Exception) -> ActionOutcome:
        logger.exception(f"Unexpected error during {action}")
        self._notify("Error", "An unexpected error occurred")
        return ActionOutcome.failed(create_internal_error(str(error), original_error=error))

    @contextmanager
    def _busy_control(self, control: str):
        """Mark a control busy for the duration; always released."""
        self._busy.add(control)
        self._redraw()
        try:
            yield
        finally:
            self._busy.discard(control)
            self._redraw()

    @contextmanager
    def _held_redraw(self):
        self._redraw_holds += 1
        try:
            yield
        finally:
            self._redraw_holds -= 1

    def _redraw(self) -> None:
        if self._redraw_holds or self._renderer is None:
            return
        try:
            self._renderer.render(self.views.state, self.cache.jobs, self.aggregates)
        except Exception:
            logger.exception("Render failed")
