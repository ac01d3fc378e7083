from datetime import datetime, timezone

from classmatch.api import deps
from classmatch.domain import SlotKey
from classmatch.workers import scheduler

MONDAY_EVENING = SlotKey.parse("Monday-6:00 PM")


def test_scheduler_registers_jobs(services):
    jobs = scheduler.get_scheduler(services.settings, services).get_jobs()

    assert {job.id for job in jobs} == {"match_sweep", "class_reminders"}


def test_match_sweep_job_forms_classes(services, mandarin):
    for user_id in ("u1", "u2", "u3"):
        services.matcher.submit_availability(user_id, mandarin.id, [MONDAY_EVENING])

    assert scheduler.run_match_sweep(services) == 1
    assert scheduler.run_match_sweep(services) == 0


def test_reminders_go_to_classes_held_tomorrow(services, notifier, mandarin):
    # Sunday 20:00 in Hong Kong
    now = datetime(2024, 3, 3, 12, 0, tzinfo=timezone.utc)
    monday = services.roster.create_class(
        mandarin.id, "Monday", "6:00 PM", initial_members=[("u1", "Alice"), ("u2", "Bob")]
    )
    services.roster.create_class(
        mandarin.id, "Tuesday", "6:00 PM", initial_members=[("u3", "Carl")]
    )
    cancelled = services.roster.create_class(
        mandarin.id, "Monday", "8:00 PM", initial_members=[("u4", "Dana")]
    )
    services.roster.cancel_class(cancelled.id)

    sent = scheduler.send_class_reminders(services, now=now)

    assert sent == 2
    reminded = {recipient.user_id for recipient, template, _ in notifier.sent}
    assert reminded == {member.user_id for member in monday.members}


def test_scheduler_jobs_share_the_app_services(services, monkeypatch):
    monkeypatch.setattr(deps, "get_services", lambda: services)

    jobs = scheduler.get_scheduler(services.settings).get_jobs()

    assert all(job.args == (services,) for job in jobs)
