from __future__ import annotations

import json

import pytest

from careerai.llm import LlmClient, parse_json, strip_fences
from careerai.matcher import JobMatcher, MatcherError, build_prompt, parse_match_results
from careerai.models import ProfileSnapshot
from conftest import FakeLlmClient
from factories import make_job

PROFILE = ProfileSnapshot(skills=["Python", "FastAPI"], years_of_experience=4, proficiency_level="Mid-Level")
JOBS = [make_job("a"), make_job("b")]


def _reply(items) -> str:
    return "```json\n" + json.dumps(items) + "\n```"


# ── JSON helpers ─────────────────────────────────────────────────────────


def test_strip_fences():
    assert strip_fences('```json\n[1, 2]\n```') == "[1, 2]"
    assert strip_fences("```\n{}\n```") == "{}"
    assert strip_fences("  [3]  ") == "[3]"


def test_parse_json_finds_array_inside_prose():
    assert parse_json('Sure! Here it is: [{"x": 1}] Hope that helps.', list) == [{"x": 1}]


def test_parse_json_rejects_wrong_type_and_garbage():
    with pytest.raises(ValueError):
        parse_json('{"jobId": "a"}', list)
    with pytest.raises(ValueError):
        parse_json("I could not score these jobs.", list)


# ── parse_match_results ──────────────────────────────────────────────────


def test_parse_valid_reply():
    raw = _reply([
        {"jobId": "a", "matchScore": 91, "matchReasons": ["Python overlap", "Seniority fits"]},
        {"jobId": "b", "matchScore": 40, "matchReasons": ["Different stack"]},
    ])

    results = parse_match_results(raw, JOBS)

    assert [(r.job_id, r.match_score) for r in results] == [("a", 91), ("b", 40)]
    assert results[0].match_reasons == ["Python overlap", "Seniority fits"]


def test_parse_coerces_ids_scores_and_single_reason():
    jobs = [make_job("7")]
    raw = json.dumps([{"jobId": 7, "matchScore": 87.6, "matchReasons": "Great fit"}])

    [result] = parse_match_results(raw, jobs)

    assert result.job_id == "7"
    assert result.match_score == 88
    assert result.match_reasons == ["Great fit"]


def test_parse_drops_unknown_ids_and_keeps_first_duplicate():
    raw = json.dumps([
        {"jobId": "ghost", "matchScore": 99, "matchReasons": []},
        {"jobId": "a", "matchScore": 70, "matchReasons": ["first"]},
        {"jobId": "a", "matchScore": 10, "matchReasons": ["second"]},
    ])

    results = parse_match_results(raw, JOBS)

    assert [(r.job_id, r.match_reasons) for r in results] == [("a", ["first"])]


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        json.dumps({"jobId": "a", "matchScore": 50, "matchReasons": []}),
        json.dumps([{"jobId": "a", "matchScore": 150, "matchReasons": []}]),
        json.dumps([{"jobId": "a", "matchScore": -1, "matchReasons": []}]),
        json.dumps([{"jobId": "a", "matchReasons": ["no score"]}]),
        json.dumps([{"matchScore": 50}]),
        json.dumps([{"jobId": "a", "matchScore": 80}]),
        json.dumps([{"jobId": "a", "matchScore": 80, "matchReasons": None}]),
        json.dumps(["a", "b"]),
    ],
    ids=[
        "garbage", "object", "score-too-high", "score-negative", "missing-score",
        "missing-id", "missing-reasons", "null-reasons", "strings",
    ],
)
def test_parse_rejects_malformed_replies(raw):
    with pytest.raises(MatcherError):
        parse_match_results(raw, JOBS)


# ── JobMatcher ───────────────────────────────────────────────────────────


def test_build_prompt_lists_profile_and_truncates_descriptions():
    long_job = make_job("long", description="x" * 5000)

    prompt = build_prompt(PROFILE, [long_job])

    assert "Skills: Python, FastAPI" in prompt
    assert "Years of Experience: 4" in prompt
    assert "Proficiency Level: Mid-Level" in prompt
    assert '"id": "long"' in prompt
    assert "x" * 1500 in prompt
    assert "x" * 1501 not in prompt


def test_matcher_returns_validated_results():
    client = FakeLlmClient(_reply([{"jobId": "b", "matchScore": 77, "matchReasons": ["ok"]}]))

    results = JobMatcher(client).match(PROFILE, JOBS)

    assert [(r.job_id, r.match_score) for r in results] == [("b", 77)]
    assert len(client.prompts) == 1


def test_matcher_skips_call_for_no_jobs():
    client = FakeLlmClient("[]")

    assert JobMatcher(client).match(PROFILE, []) == []
    assert client.prompts == []


def test_matcher_wraps_client_failures():
    client = FakeLlmClient(TimeoutError("upstream timed out"))

    with pytest.raises(MatcherError, match="upstream timed out"):
        JobMatcher(client).match(PROFILE, JOBS)


def test_matcher_without_api_key_fails():
    client = LlmClient(api_key="", model="gemini-2.5-flash", base_url="http://localhost")

    with pytest.raises(MatcherError, match="GEMINI_API_KEY"):
        JobMatcher(client).match(PROFILE, JOBS)
