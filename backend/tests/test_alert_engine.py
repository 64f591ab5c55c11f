from datetime import timedelta

import pytest

from conftest import NOW, make_reading
from healthwatch.schemas.alerts import Severity
from healthwatch.schemas.readings import CORE_KINDS, ReadingKind
from healthwatch.services.alerts.dedup import AlertSubmitter, SubjectLocks
from healthwatch.services.alerts.engine import AlertEngine, by_severity
from healthwatch.services.alerts.errors import AlertPersistenceError
from healthwatch.services.alerts.repository import InMemoryAlertRepository
from healthwatch.services.alerts.reminders import detect_missed_readings
from healthwatch.services.alerts.thresholds import evaluate_reading

NORMAL_VALUES = {
    ReadingKind.HEART_RATE: 72,
    ReadingKind.BLOOD_PRESSURE: (118, 76),
    ReadingKind.GLUCOSE_LEVEL: 95,
    ReadingKind.BODY_TEMPERATURE: 98.4,
}


async def _log_all_normal(reading_repository, at=NOW):
    for kind in CORE_KINDS:
        await reading_repository.add(make_reading(kind, NORMAL_VALUES[kind], observed_at=at))


@pytest.mark.anyio
async def test_reading_over_threshold_creates_alert_and_queues_email(
    alert_engine, alert_repository, dispatcher
):
    reading = make_reading(ReadingKind.HEART_RATE, 125)

    summary = await alert_engine.on_reading_persisted(reading)

    assert summary.created == 1
    assert summary.alert_ids == [1]
    assert alert_repository.alerts[0].title == "High Heart Rate"
    assert dispatcher.pending == 1


@pytest.mark.anyio
async def test_normal_reading_creates_nothing(alert_engine, alert_repository, dispatcher):
    summary = await alert_engine.on_reading_persisted(make_reading(ReadingKind.HEART_RATE, 75))

    assert summary.candidates == 0
    assert alert_repository.alerts == []
    assert dispatcher.pending == 0


@pytest.mark.anyio
async def test_replayed_reading_is_suppressed(alert_engine, alert_repository):
    reading = make_reading(ReadingKind.GLUCOSE_LEVEL, 250)

    await alert_engine.on_reading_persisted(reading)
    replay = await alert_engine.on_reading_persisted(reading)

    assert replay.created == 0
    assert replay.suppressed == 1
    assert len(alert_repository.alerts) == 1


@pytest.mark.anyio
async def test_full_pass_for_subject_without_readings(alert_engine, alert_repository):
    summary = await alert_engine.evaluate_subject(1)

    assert summary.candidates == 4
    assert summary.created == 1
    assert summary.suppressed == 3
    assert alert_repository.alerts[0].title.startswith("Missed Reading Reminder:")


@pytest.mark.anyio
async def test_full_pass_submits_most_severe_first(
    alert_engine, reading_repository, alert_repository
):
    await reading_repository.add(make_reading(ReadingKind.HEART_RATE, 125))

    summary = await alert_engine.evaluate_subject(1)

    severities = [a.severity for a in alert_repository.alerts]
    assert severities == ["critical", "info"]
    assert summary.created == 2


@pytest.mark.anyio
async def test_reinforcement_only_without_critical_or_warning(
    alert_engine, reading_repository
):
    await reading_repository.add(make_reading(ReadingKind.HEART_RATE, 125))
    await reading_repository.add(make_reading(ReadingKind.GLUCOSE_LEVEL, 90))

    primary, reinforcement = await alert_engine.collect_candidates(1)

    assert any(c.severity is Severity.CRITICAL for c in primary)
    assert reinforcement == []


@pytest.mark.anyio
async def test_complete_day_earns_reinforcement(alert_engine, reading_repository, alert_repository):
    await _log_all_normal(reading_repository, at=NOW - timedelta(hours=1))

    summary = await alert_engine.evaluate_subject(1)

    assert summary.created == 1
    assert alert_repository.alerts[0].title == "Daily Health Tasks Completed"


@pytest.mark.anyio
async def test_reinforcement_not_repeated_within_a_day(
    alert_engine, reading_repository, alert_repository, clock
):
    await _log_all_normal(reading_repository, at=NOW - timedelta(hours=1))
    await alert_engine.evaluate_subject(1)

    clock.advance(timedelta(hours=8))
    await _log_all_normal(reading_repository, at=clock.now - timedelta(minutes=5))
    summary = await alert_engine.evaluate_subject(1)

    assert summary.created == 0
    assert [a.title for a in alert_repository.alerts] == ["Daily Health Tasks Completed"]


@pytest.mark.anyio
async def test_partial_day_earns_good_progress_beside_missed_reminder(
    alert_engine, reading_repository, alert_repository
):
    for kind in (ReadingKind.HEART_RATE, ReadingKind.BLOOD_PRESSURE, ReadingKind.GLUCOSE_LEVEL):
        await reading_repository.add(
            make_reading(kind, NORMAL_VALUES[kind], observed_at=NOW - timedelta(hours=1))
        )

    summary = await alert_engine.evaluate_subject(1)

    assert summary.created == 2
    assert [a.title for a in alert_repository.alerts] == [
        "Missed Reading Reminder: body temperature",
        "Good Progress",
    ]


@pytest.mark.anyio
async def test_complete_and_consistent_week_earns_both_reinforcements(
    alert_engine, reading_repository, alert_repository
):
    for hours_ago in range(1, 7):
        await _log_all_normal(reading_repository, at=NOW - timedelta(hours=hours_ago))

    summary = await alert_engine.evaluate_subject(1)

    assert summary.created == 2
    assert [a.title for a in alert_repository.alerts] == [
        "Daily Health Tasks Completed",
        "Consistent Health Monitoring",
    ]


@pytest.mark.anyio
async def test_pattern_alert_from_recent_history(alert_engine, reading_repository, alert_repository):
    for hours_ago, value in ((30, 60), (24, 90), (12, 62), (6, 95), (1, 61)):
        await reading_repository.add(
            make_reading(ReadingKind.HEART_RATE, value, observed_at=NOW - timedelta(hours=hours_ago))
        )

    primary, _ = await alert_engine.collect_candidates(1)

    assert "Heart Rate Variability" in [c.title for c in primary]


@pytest.mark.anyio
async def test_full_pass_via_ingestion_hook(alert_engine, reading_repository):
    reading = await reading_repository.add(make_reading(ReadingKind.HEART_RATE, 72))

    summary = await alert_engine.on_reading_persisted(reading, full_pass=True)

    assert summary.candidates == 3


@pytest.mark.anyio
async def test_checkpoint_runs_before_notification(reading_repository, clock):
    events = []

    async def _checkpoint():
        events.append("commit")

    engine = AlertEngine(
        reading_repository,
        AlertSubmitter(InMemoryAlertRepository(), locks=SubjectLocks(), clock=clock),
        notify=lambda alert: events.append(f"notify:{alert.id}"),
        checkpoint=_checkpoint,
    )

    await engine.on_reading_persisted(make_reading(ReadingKind.HEART_RATE, 130))

    assert events == ["commit", "notify:1"]


class _FailingSecondInsert(InMemoryAlertRepository):
    async def insert(self, candidate, fingerprint, created_at):
        if self.alerts:
            raise AlertPersistenceError("Alert store unavailable")
        return await super().insert(candidate, fingerprint, created_at)


@pytest.mark.anyio
async def test_persistence_failure_propagates_and_keeps_earlier_alerts(
    reading_repository, clock
):
    repository = _FailingSecondInsert()
    notified = []
    engine = AlertEngine(
        reading_repository,
        AlertSubmitter(repository, locks=SubjectLocks(), clock=clock),
        notify=notified.append,
    )
    await reading_repository.add(make_reading(ReadingKind.HEART_RATE, 125))

    with pytest.raises(AlertPersistenceError):
        await engine.evaluate_subject(1)

    assert len(repository.alerts) == 1
    assert len(notified) == 1


def test_by_severity_is_stable():
    reading = make_reading(ReadingKind.HEART_RATE, 105)
    missed = detect_missed_readings(1, set(), NOW)
    warning = evaluate_reading(reading)

    ordered = by_severity(missed + warning)

    assert ordered[0].severity is Severity.WARNING
    assert ordered[1:] == missed
