"""
Unit tests for the job models and the collaborator protocols.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tradieiq.backends.memory import InMemoryAuthGateway, InMemoryJobStore
from tradieiq.backends.protocols import AuthGateway, JobStore, Notifier, Renderer
from tradieiq.core.notifications import NotificationLog
from tradieiq.db.auth_store import SqliteAuthGateway
from tradieiq.db.jobs_store import SqliteJobStore
from tradieiq.models.job import Job, JobDraft, JobUpdate
from tradieiq.models.status import JobStatus
from tradieiq.utils.pydantic_error_mapper import map_pydantic_validation_error

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class TestJob:
    def test_defaults(self):
        job = Job(id="j1", owner_id="u1")

        assert job.value == "$0"
        assert job.status == JobStatus.NEW
        assert job.tasks == []
        assert job.created_at is None

    def test_blank_status_and_missing_value(self):
        job = Job.model_validate({"id": "j1", "owner_id": "u1", "status": "", "value": None})

        assert job.status == JobStatus.NEW
        assert job.value == "$0"

    def test_unknown_fields_ignored(self):
        job = Job.model_validate({"id": "j1", "owner_id": "u1", "photo_urls": ["a.jpg"]})
        assert not hasattr(job, "photo_urls")

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            Job(id="j1", owner_id="u1", status="paused")


class TestJobDraft:
    def test_strips_required_text(self):
        draft = JobDraft(owner_id="u1", client=" Acme ", address=" 1 Main St ", created_at=NOW, updated_at=NOW)

        assert draft.client == "Acme"
        assert draft.address == "1 Main St"

    @pytest.mark.parametrize("field", ["client", "address", "owner_id"])
    def test_required_text_cannot_be_blank(self, field):
        values = {"owner_id": "u1", "client": "Acme", "address": "1 Main St", field: "   "}

        with pytest.raises(ValidationError) as exc_info:
            JobDraft(created_at=NOW, updated_at=NOW, **values)

        assert map_pydantic_validation_error(exc_info.value).message == f"Invalid {field}: cannot be empty"

    def test_rejects_id(self):
        with pytest.raises(ValidationError):
            JobDraft(id="j1", owner_id="u1", client="Acme", address="x", created_at=NOW, updated_at=NOW)


class TestJobUpdate:
    def test_only_set_fields(self):
        assert JobUpdate(summary="Deck").to_fields() == {"summary": "Deck"}

    def test_status_as_plain_string(self):
        assert JobUpdate(status="completed").to_fields() == {"status": "completed"}

    def test_empty_update(self):
        assert JobUpdate().to_fields() == {}

    def test_blank_client_rejected(self):
        with pytest.raises(ValidationError):
            JobUpdate(client="")

    def test_fixed_fields_rejected(self):
        with pytest.raises(ValidationError):
            JobUpdate(owner_id="u2")


class TestProtocols:
    @pytest.mark.parametrize(
        "gateway", [InMemoryAuthGateway(), SqliteAuthGateway("unused.db")], ids=["memory", "sqlite"]
    )
    def test_auth_gateways(self, gateway):
        assert isinstance(gateway, AuthGateway)

    @pytest.mark.parametrize("store", [InMemoryJobStore(), SqliteJobStore("unused.db")], ids=["memory", "sqlite"])
    def test_job_stores(self, store):
        assert isinstance(store, JobStore)

    def test_notification_log_is_notifier(self):
        assert isinstance(NotificationLog(), Notifier)
        assert not isinstance(NotificationLog(), Renderer)
