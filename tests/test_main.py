import logging
from datetime import datetime, timedelta, timezone

from fittrack import main
from fittrack.core.errors import PersistenceError
from fittrack.main import create_app

PURGE_JOB_ID = "expired_recommendation_purge_job"


class BrokenStore:
    def purge_expired_recommendations(self):
        raise PersistenceError("database is locked")


def test_purge_job_removes_expired_rows(db):
    owner = db.create_user("purge@example.com", "hash")["user_id"]
    now = datetime.now(timezone.utc)
    db.create_ai_recommendation(owner, "meal", "AI Meal Plan", "old", None,
                                now - timedelta(days=9), now - timedelta(days=2))
    fresh = db.create_ai_recommendation(owner, "meal", "AI Meal Plan", "new", None,
                                        now, now + timedelta(days=7))

    main.purge_expired_recommendations(db)

    remaining = db.list_ai_recommendations(owner, include_expired=True)
    assert [r["id"] for r in remaining] == [fresh["id"]]


def test_purge_job_logs_store_failures(caplog):
    with caplog.at_level(logging.ERROR, logger="fittrack.main"):
        main.purge_expired_recommendations(BrokenStore())

    assert "database is locked" in caplog.text


def test_purge_job_registered_when_interval_positive(make_client, settings):
    client = make_client(settings.model_copy(update={"EXPIRED_PURGE_INTERVAL_MINUTES": 15}))

    scheduler = client.app.state.scheduler
    job = scheduler.get_job(PURGE_JOB_ID)
    assert scheduler.running
    assert job is not None
    assert job.trigger.interval == timedelta(minutes=15)


def test_purge_job_disabled_when_interval_zero(client):
    assert client.app.state.scheduler is None


def test_create_app_applies_configured_log_level(settings, db):
    create_app(settings.model_copy(update={"LOG_LEVEL": "DEBUG"}), db=db)
    assert logging.getLogger("fittrack").level == logging.DEBUG

    create_app(settings, db=db)
    assert logging.getLogger("fittrack").level == logging.WARNING

    console_handlers = [h for h in logging.getLogger().handlers if h.get_name() == "fittrack.console"]
    assert len(console_handlers) == 1
    assert console_handlers[0].level == logging.WARNING
