"""
View controller: picks which screen is visible, gated by the session.

Protected screens (dashboard, job detail) require a signed-in session.
A denied request while signed out forces the sign-in screen and raises
``AccessDenied`` for the caller to surface. While the session is still
loading the screen is left alone so LOADING is only ever exited by the
first auth notification.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from tradieiq.core.job_cache import JobCache
from tradieiq.core.session_store import SessionStore, SessionTransition
from tradieiq.models.errors import create_access_denied_error
from tradieiq.models.job import Job
from tradieiq.models.status import PROTECTED_VIEWS, JobTab, ViewName

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewState:
    view: ViewName = ViewName.LOADING
    selected_job_id: Optional[str] = None
    tab: JobTab = JobTab.TRANSCRIPT

    def to_dict(self) -> dict:
        return {
            "view": self.view.value,
            "selected_job_id": self.selected_job_id,
            "tab": self.tab.value,
        }


class ViewController:
    def __init__(self, session: SessionStore, cache: JobCache):
        self._session = session
        self._cache = cache
        self._state = ViewState()

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def selected_job(self) -> Optional[Job]:
        return self._cache.get(self._state.selected_job_id)

    def require_signed_in(self, message: str) -> None:
        """
        Raise AccessDenied unless signed in, forcing sign-in when signed out.

        Raises:
            AccessDenied: If there is no signed-in session
        """
        if self._session.is_signed_in:
            return
        logger.warning(f"Access denied ({self._session.state.value}): {message}")
        if not self._session.is_loading:
            self._state = ViewState(view=ViewName.SIGN_IN, tab=self._state.tab)
        raise create_access_denied_error(message)

    def show(self, view: ViewName) -> ViewState:
        """
        Make ``view`` visible.

        Job detail is only shown for a selection present in the cache;
        otherwise the call is a no-op.

        Raises:
            AccessDenied: For a protected view without a signed-in session
        """
        view = ViewName(view)
        if view == ViewName.LOADING:
            return self._state
        if view in PROTECTED_VIEWS:
            self.require_signed_in("Please sign in to access TradieIQ")

        if view == ViewName.JOB_DETAIL:
            if self._state.selected_job_id not in self._cache:
                return self._state
            self._state = replace(self._state, view=ViewName.JOB_DETAIL)
        elif view == ViewName.DASHBOARD:
            self._state = replace(self._state, view=ViewName.DASHBOARD)
        else:
            self._state = ViewState(view=ViewName.SIGN_IN, tab=self._state.tab)
        return self._state

    def select_job(self, job_id: str) -> bool:
        """
        Open the detail screen for ``job_id``.

        Returns:
            True if the job was selected, False if it is not in the cache

        Raises:
            AccessDenied: Without a signed-in session
        """
        self.require_signed_in("Please sign in to view jobs")
        if job_id not in self._cache:
            logger.debug(f"Ignoring selection of job {job_id} not in cache")
            return False
        self._state = replace(self._state, view=ViewName.JOB_DETAIL, selected_job_id=job_id)
        return True

    def switch_tab(self, tab: JobTab) -> ViewState:
        """
        Raises:
            AccessDenied: Without a signed-in session
            ValueError: For an unknown tab name
        """
        self.require_signed_in("Please sign in to access this feature")
        self._state = replace(self._state, tab=JobTab(tab))
        return self._state

    def on_session_change(self, transition: SessionTransition) -> None:
        """Follow a gateway notification to sign-in or dashboard."""
        if transition.identity is None:
            self._state = ViewState(view=ViewName.SIGN_IN)
        elif transition.is_first or transition.identity_changed:
            self._state = ViewState(view=ViewName.DASHBOARD)

    def reconcile(self, jobs: Sequence[Job]) -> None:
        """Drop a selection that vanished from the latest push."""
        selected = self._state.selected_job_id
        if selected is None:
            return
        if any(job.id == selected for job in jobs):
            return
        if self._state.view == ViewName.JOB_DETAIL:
            logger.info(f"Selected job {selected} no longer available; returning to dashboard")
            self._state = replace(self._state, view=ViewName.DASHBOARD, selected_job_id=None)
        else:
            self._state = replace(self._state, selected_job_id=None)
