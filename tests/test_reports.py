from datetime import datetime, timedelta, timezone

import pytest

from skillquiz.core.cache import ADMIN_STATS_KEY, user_performance_key
from skillquiz.core.errors import InvalidInput
from skillquiz.models.orm import QuizAttempt
from skillquiz.models.schemas import AnswerIn
from skillquiz.services.quiz_service import QuizService
from skillquiz.services.reports import ReportAggregator, period_label

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def add_attempt(db, user, skill, score, when, total=3):
    db.add(QuizAttempt(user_id=user.id, skill_id=skill.id, score=score, total_questions=total, completed_at=when))
    db.commit()


@pytest.fixture
def service(store, cache, rng):
    return QuizService(store, cache, rng=rng)


def test_new_user_has_empty_report(seeded, service):
    report = service.get_user_performance(seeded["alice"].id)
    assert report.overall.total_quizzes == 0
    assert report.overall.average_score is None
    assert report.skills == []
    assert report.recent_activity == []


def test_report_reflects_submission_after_invalidation(seeded, service):
    alice = seeded["alice"]
    assert service.get_user_performance(alice.id).overall.total_quizzes == 0
    answers = [AnswerIn(question_id=q.id, selected_option="A") for q in seeded["arrays_qs"]]
    service.submit_quiz(alice.id, seeded["arrays"].id, answers, 30)
    report = service.get_user_performance(alice.id)
    assert report.overall.total_quizzes == 1
    assert report.recent_activity[0].skill_name == "Arrays"
    assert report.recent_activity[0].score == 33


def test_overall_and_per_skill(seeded, db, service):
    alice = seeded["alice"]
    add_attempt(db, alice, seeded["arrays"], 40, NOW - timedelta(days=3))
    add_attempt(db, alice, seeded["arrays"], 60, NOW - timedelta(days=2))
    add_attempt(db, alice, seeded["graphs"], 90, NOW - timedelta(days=1))
    add_attempt(db, seeded["bob"], seeded["graphs"], 10, NOW)

    report = service.get_user_performance(alice.id)
    assert report.overall.total_quizzes == 3
    assert report.overall.average_score == pytest.approx(63.33)
    assert (report.overall.best_score, report.overall.worst_score) == (90, 40)

    assert [s.skill_name for s in report.skills] == ["Graphs", "Arrays"]
    arrays = report.skills[1]
    assert arrays.quizzes_taken == 2
    assert arrays.average_score == 50
    assert arrays.best_score == 60
    assert arrays.first_attempt < arrays.last_attempt
    assert "Empty" not in [s.skill_name for s in report.skills]

    assert [a.score for a in report.recent_activity] == [90, 60, 40]


def test_recent_activity_is_capped(seeded, db, service):
    for i in range(12):
        add_attempt(db, seeded["alice"], seeded["arrays"], i, NOW - timedelta(minutes=60 - i))
    recent = service.get_user_performance(seeded["alice"].id).recent_activity
    assert len(recent) == 10
    assert [a.score for a in recent] == list(range(11, 1, -1))


def test_user_report_served_from_cache(seeded, store, service, cache, monkeypatch):
    alice = seeded["alice"]
    first = service.get_user_performance(alice.id)
    assert cache.get(user_performance_key(alice.id)) is not None

    def boom(*args, **kwargs):
        raise AssertionError("store should not be queried on a cache hit")
    monkeypatch.setattr(store, "aggregate_user_performance", boom)
    assert service.get_user_performance(alice.id) == first


def test_admin_stats(seeded, db, service):
    add_attempt(db, seeded["alice"], seeded["arrays"], 50, NOW - timedelta(hours=2))
    add_attempt(db, seeded["bob"], seeded["arrays"], 100, NOW - timedelta(hours=1))
    add_attempt(db, seeded["alice"], seeded["graphs"], 30, NOW)

    stats = service.get_admin_stats()
    assert (stats.users.total_users, stats.users.admin_users, stats.users.regular_users) == (3, 1, 2)
    assert stats.quizzes.total_attempts == 3
    assert stats.quizzes.average_score == 60
    assert stats.quizzes.active_users == 2
    assert (stats.questions.total_questions, stats.questions.total_skills) == (5, 2)

    overview = {s.skill_name: s for s in stats.skills_overview}
    assert [s.skill_name for s in stats.skills_overview][0] == "Arrays"
    assert (overview["Arrays"].questions_count, overview["Arrays"].attempts_count) == (3, 2)
    assert overview["Arrays"].average_score == 75
    assert overview["Empty"].attempts_count == 0
    assert overview["Empty"].average_score is None

    assert [(a.username, a.skill_name) for a in stats.recent_activity] == [
        ("alice", "Graphs"), ("bob", "Arrays"), ("alice", "Arrays")]


def test_admin_stats_expire_by_ttl_only(seeded, service, fake_redis):
    alice = seeded["alice"]
    assert service.get_admin_stats().quizzes.total_attempts == 0
    service.submit_quiz(alice.id, seeded["arrays"].id, [AnswerIn(question_id=seeded["arrays_qs"][0].id, selected_option="A")])
    assert ADMIN_STATS_KEY not in fake_redis.deleted
    assert service.get_admin_stats().quizzes.total_attempts == 0
    fake_redis.advance(301)
    assert service.get_admin_stats().quizzes.total_attempts == 1


def test_skill_gaps(seeded, db, store, cache):
    add_attempt(db, seeded["alice"], seeded["arrays"], 80, NOW)
    add_attempt(db, seeded["bob"], seeded["arrays"], 60, NOW)
    add_attempt(db, seeded["alice"], seeded["graphs"], 20, NOW)
    gaps = ReportAggregator(store, cache).skill_gaps()
    assert [g.skill_name for g in gaps] == ["Graphs", "Arrays"]
    arrays = gaps[1]
    assert (arrays.total_attempts, arrays.unique_users, arrays.lowest_score, arrays.highest_score) == (2, 2, 60, 80)
    assert arrays.average_score == 70


@pytest.mark.parametrize("period,label", [("week", "2026-42"), ("month", "2026-10"), ("quarter", "2026-Q4")])
def test_period_label(period, label):
    assert period_label(datetime(2026, 10, 15), period) == label


def test_time_analysis(seeded, db, store, cache):
    add_attempt(db, seeded["alice"], seeded["arrays"], 80, datetime(2026, 10, 15, tzinfo=timezone.utc))
    add_attempt(db, seeded["bob"], seeded["arrays"], 40, datetime(2026, 10, 16, tzinfo=timezone.utc))
    add_attempt(db, seeded["alice"], seeded["graphs"], 50, datetime(2026, 10, 5, tzinfo=timezone.utc))
    add_attempt(db, seeded["alice"], seeded["graphs"], 0, datetime(2026, 1, 10, tzinfo=timezone.utc))
    reports = ReportAggregator(store, cache, clock=lambda: NOW)

    weekly = reports.time_analysis("week")
    assert weekly.period == "week"
    assert [(p.period, p.attempts_count, p.unique_users) for p in weekly.data] == [("2026-42", 2, 2), ("2026-41", 1, 1)]
    assert weekly.data[0].average_score == 60

    monthly = reports.time_analysis("month")
    assert [(p.period, p.attempts_count) for p in monthly.data] == [("2026-10", 3)]

    with pytest.raises(InvalidInput):
        reports.time_analysis("decade")


def test_user_report_ttl(seeded, service, fake_redis, monkeypatch, store):
    alice = seeded["alice"]
    first = service.get_user_performance(alice.id)
    assert fake_redis.ttl(user_performance_key(alice.id)) == 600

    calls = []
    real = store.aggregate_user_performance
    monkeypatch.setattr(store, "aggregate_user_performance", lambda *a, **kw: calls.append(a) or real(*a, **kw))
    fake_redis.advance(599)
    assert service.get_user_performance(alice.id) == first
    assert calls == []
    fake_redis.advance(2)
    service.get_user_performance(alice.id)
    assert len(calls) == 1


def test_user_overview(seeded, db, store, cache):
    alice, bob, root = seeded["alice"], seeded["bob"], seeded["root"]
    alice.created_at = NOW - timedelta(days=3)
    bob.created_at = NOW - timedelta(days=2)
    root.created_at = NOW - timedelta(days=1)
    db.commit()
    add_attempt(db, alice, seeded["arrays"], 40, NOW - timedelta(hours=5))
    add_attempt(db, alice, seeded["graphs"], 80, NOW - timedelta(hours=1))

    users = ReportAggregator(store, cache).user_overview()
    assert [u.username for u in users] == ["root", "bob", "alice"]
    by_name = {u.username: u for u in users}
    assert by_name["bob"].quizzes_taken == 0
    assert by_name["bob"].average_score is None
    assert by_name["bob"].last_activity is None
    assert by_name["alice"].quizzes_taken == 2
    assert by_name["alice"].average_score == 60
    assert by_name["alice"].last_activity.replace(tzinfo=None) == (NOW - timedelta(hours=1)).replace(tzinfo=None)
    assert by_name["root"].role == "admin"
