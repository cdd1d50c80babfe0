from __future__ import annotations

import random
from datetime import timedelta

import pytest

from careerai.analytics import (
    AnalyticsService,
    activity_feed,
    compute_analytics,
    generate_insights,
    skill_coverage,
    weekly_progress,
)
from careerai.models import MatchStatus, SkillCoverage
from factories import NOW, make_job, make_match, make_prep, make_resume


def _types(insights):
    return [i.type for i in insights]


# ── insights ─────────────────────────────────────────────────────────────


def test_low_application_rate_warns_with_zero_percent():
    insights = generate_insights(10, 0, 0, [])

    warnings = [i for i in insights if i.type == "warning"]
    assert len(warnings) == 1
    assert warnings[0].title == "Low Application Rate"
    assert "0%" in warnings[0].message


def test_high_application_rate_is_a_success():
    insights = generate_insights(10, 4, 0, [])

    successes = [i for i in insights if i.type == "success"]
    assert len(successes) == 1
    assert "40%" in successes[0].message


def test_mid_application_rate_has_no_rate_insight():
    insights = generate_insights(10, 2, 0, [])

    titles = [i.title for i in insights]
    assert "Low Application Rate" not in titles
    assert "Great Application Activity" not in titles


@pytest.mark.parametrize("applications", [1, 3])
def test_rate_boundaries_are_inclusive(applications):
    insights = generate_insights(10, applications, 1, [])
    assert not any("Application" in i.title for i in insights)


def test_applications_without_prep_suggest_interview_prep():
    insights = generate_insights(10, 3, 0, [])

    info = [i for i in insights if i.type == "info"]
    assert len(info) == 1
    assert info[0].title == "Prepare for Interviews"


def test_interview_count_uses_singular_and_plural():
    one = [i for i in generate_insights(0, 0, 1, []) if i.title == "Interview Ready"]
    assert len(one) == 1
    assert "1 interview." in one[0].message

    three = [i for i in generate_insights(0, 0, 3, []) if i.title == "Interview Ready"]
    assert "3 interviews." in three[0].message


def test_no_jobs_and_no_activity_gives_no_insights():
    assert generate_insights(0, 0, 0, []) == []


def test_skill_insights_follow_rate_and_prep_rules():
    coverage = [
        SkillCoverage("Python", current=60, jobs_requiring=4),
        SkillCoverage("Docker", current=95, jobs_requiring=2),
        SkillCoverage("SQL", current=70, jobs_requiring=1),
        SkillCoverage("Go", current=50, jobs_requiring=0),
        SkillCoverage("Rust", current=10, jobs_requiring=0),
    ]

    insights = generate_insights(10, 0, 2, coverage)

    assert [i.title for i in insights] == [
        "Low Application Rate",
        "Interview Ready",
        "Most In-Demand Skill",
        "Skill Development Opportunity",
    ]
    assert insights[2].message.startswith("Python is required by 4 of your matched jobs")
    assert "Consider improving: Python, SQL, Go." in insights[3].message
    assert "Rust" not in insights[3].message


# ── skill coverage ───────────────────────────────────────────────────────


def test_skill_coverage_counts_substring_matches_both_ways():
    matches = [
        make_match("1", job=make_job("j1", tags=["ReactJS"], requirements=["ReactJS", "CSS"])),
        make_match("2", job=make_job("j2", tags=[], requirements=["react"])),
        make_match("3", job=make_job("j3", tags=["Java"], requirements=["Java"])),
        make_match("4", job=make_job("j4", tags=["Go"], requirements=["Go"])),
    ]

    coverage = skill_coverage(["React", "JavaScript", "Kotlin"], matches, random.Random(1))

    by_skill = {c.skill: c.jobs_requiring for c in coverage}
    assert by_skill == {"React": 2, "JavaScript": 1, "Kotlin": 0}
    assert [c.skill for c in coverage] == ["React", "JavaScript", "Kotlin"]


def test_skill_coverage_current_is_bounded_placeholder():
    coverage = skill_coverage([f"skill{i}" for i in range(50)], [], random.Random(7))

    assert all(75 <= c.current < 100 for c in coverage)
    assert all(c.target == 100 for c in coverage)


def test_skill_coverage_sorted_by_demand_with_stable_ties():
    matches = [make_match(str(i), job=make_job(f"j{i}", tags=["Docker"], requirements=[])) for i in range(3)]

    coverage = skill_coverage(["Python", "Docker", "Rust"], matches, random.Random(0))

    assert [c.skill for c in coverage] == ["Docker", "Python", "Rust"]


# ── weekly progress ──────────────────────────────────────────────────────


def test_weekly_buckets_are_labelled_oldest_first():
    weeks = weekly_progress([], [], NOW)
    assert [w.week for w in weeks] == ["Week 1", "Week 2", "Week 3", "Week 4"]


def test_match_created_now_lands_in_latest_week():
    weeks = weekly_progress([make_match("now", created_at=NOW)], [], NOW)
    assert [w.jobs_viewed for w in weeks] == [0, 0, 0, 1]


def test_match_created_eight_days_ago_lands_in_week_three():
    weeks = weekly_progress([make_match("old", created_at=NOW - timedelta(days=8))], [], NOW)
    assert [w.jobs_viewed for w in weeks] == [0, 0, 1, 0]


def test_weekly_progress_counts_applications_and_preps():
    matches = [
        make_match("a", created_at=NOW - timedelta(days=1), status=MatchStatus.APPLIED),
        make_match("b", created_at=NOW - timedelta(days=2)),
        make_match("c", created_at=NOW - timedelta(days=20), status=MatchStatus.APPLIED),
        make_match("ancient", created_at=NOW - timedelta(days=40)),
    ]
    preps = [make_prep("p", created_at=NOW - timedelta(days=15))]

    weeks = weekly_progress(matches, preps, NOW)

    assert [w.jobs_viewed for w in weeks] == [0, 1, 0, 2]
    assert [w.applications_submitted for w in weeks] == [0, 1, 0, 1]
    assert [w.interviews_scheduled for w in weeks] == [0, 1, 0, 0]


# ── activity feed ────────────────────────────────────────────────────────


def test_feed_orders_resume_match_and_prep_newest_first():
    t0 = NOW - timedelta(hours=3)
    resume = make_resume(uploaded_at=t0)
    match = make_match("m", created_at=t0 + timedelta(hours=1))
    prep = make_prep("p", created_at=t0 + timedelta(hours=2))

    feed = activity_feed(resume, [match], [prep])

    assert [a.id for a in feed] == [f"prep-{prep.id}", "job-m", f"resume-{resume.id}"]
    assert [a.action for a in feed] == ["Generated interview prep for", "Discovered", "Uploaded resume"]


def test_feed_labels_applied_jobs_and_caps_sources():
    matches = [
        make_match(str(i), created_at=NOW - timedelta(minutes=i),
                   status=MatchStatus.APPLIED if i == 0 else MatchStatus.NEW)
        for i in range(15)
    ]
    preps = [make_prep(f"p{i}", created_at=NOW - timedelta(days=1, minutes=i)) for i in range(8)]

    feed = activity_feed(make_resume(uploaded_at=NOW - timedelta(days=3)), matches, preps)

    assert len(feed) == 16
    assert feed[0].action == "Applied to"
    assert sum(1 for a in feed if a.id.startswith("job-")) == 10
    assert sum(1 for a in feed if a.id.startswith("prep-")) == 5
    assert "job-14" not in {a.id for a in feed}


def test_feed_truncates_to_limit():
    matches = [make_match(str(i), created_at=NOW - timedelta(minutes=i)) for i in range(10)]
    preps = [make_prep(f"p{i}", created_at=NOW - timedelta(hours=i)) for i in range(5)]

    assert len(activity_feed(make_resume(), matches, preps, limit=12)) == 12


# ── snapshot ─────────────────────────────────────────────────────────────


def test_compute_analytics_snapshot():
    resume = make_resume(skills=[f"Skill{i}" for i in range(20)] + ["Python"])
    matches = [
        make_match("1", created_at=NOW - timedelta(days=1), status=MatchStatus.APPLIED),
        make_match("2", created_at=NOW - timedelta(days=2)),
        make_match("3", created_at=NOW - timedelta(days=3)),
    ]
    preps = [make_prep("p1", created_at=NOW - timedelta(days=1))]

    analytics = compute_analytics("u1", resume, matches, preps, now=NOW, rng=random.Random(3))

    assert analytics.total_jobs_matched == 3
    assert analytics.total_applications == 1
    assert analytics.total_interviews == 1
    assert len(analytics.skill_coverage) == 15
    assert analytics.skill_coverage[0].skill == "Python"
    assert analytics.skill_coverage[0].jobs_requiring == 3
    assert analytics.weekly_progress[-1].jobs_viewed == 3
    assert _types(analytics.insights)[:2] == ["success", "success"]

    data = analytics.to_dict()
    assert set(data) == {
        "userId", "totalJobsMatched", "totalApplications", "totalInterviews",
        "skillCoverage", "activityLog", "weeklyProgress", "insights",
    }


def test_compute_analytics_without_resume():
    analytics = compute_analytics("u1", None, [], [], now=NOW)

    assert analytics.skill_coverage == []
    assert analytics.activity_log == []
    assert analytics.insights == []


# ── service ──────────────────────────────────────────────────────────────


def test_service_reads_store(store):
    store.save_resume(make_resume())
    store.save_job_matches("u1", [make_match("1", score=90), make_match("2", score=40)])
    store.update_job_status("u1", "2", MatchStatus.APPLIED)
    store.save_interview_prep(make_prep())

    analytics = AnalyticsService(store, random.Random(5)).get_analytics("u1", now=NOW)

    assert analytics.total_jobs_matched == 2
    assert analytics.total_applications == 1
    assert analytics.total_interviews == 1
    assert analytics.activity_log[0].timestamp == NOW


def test_service_requires_user_id(memory_store):
    with pytest.raises(ValueError):
        AnalyticsService(memory_store).get_analytics("")
    with pytest.raises(ValueError):
        AnalyticsService(memory_store).dashboard_stats(None)


def test_dashboard_stats(store):
    service = AnalyticsService(store, random.Random(11))
    assert service.dashboard_stats("u1").skill_score == 0

    store.save_resume(make_resume())
    store.save_job_matches("u1", [make_match("1"), make_match("2"), make_match("3")])
    store.update_job_status("u1", "3", MatchStatus.APPLIED)
    store.save_interview_prep(make_prep())

    stats = service.dashboard_stats("u1")
    assert (stats.jobs_matched, stats.applications, stats.interviews) == (3, 1, 1)
    assert 75 <= stats.skill_score <= 95
