"""Tests for the GitHub issue source."""

from datetime import date

import pytest
import requests

from contrib_finder.errors import GitHubAPIError, GitHubAuthError, RateLimitExceeded
from contrib_finder.github_api import (
    GitHubClient,
    build_search_queries,
    extract_repo_name,
    map_skill,
    to_candidate,
    truncate_body,
)
from contrib_finder.models import Profile


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", headers=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.headers = headers or {}

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _item(repo, number, body="Body", labels=("good first issue",)):
    return {
        "number": number,
        "title": f"Issue {number}",
        "html_url": f"https://github.com/{repo}/issues/{number}",
        "repository_url": f"https://api.github.com/repos/{repo}",
        "labels": [{"name": name} for name in labels],
        "body": body,
        "created_at": "2025-05-06T07:08:09Z",
    }


def _client(responses):
    session = FakeSession(responses)
    sleeps = []
    client = GitHubClient("tok", session=session, sleep=sleeps.append)
    return client, session, sleeps


class TestQueryBuilding:
    def test_map_known_skill(self):
        assert map_skill("Python") == "language:python"
        assert map_skill("Ruby on Rails") == "language:ruby topic:rails"

    def test_map_unknown_skill_to_topic(self):
        assert map_skill("Kubernetes") == "topic:kubernetes"

    def test_one_query_per_skill_and_label(self):
        profile = Profile(skills=("Go", "Redis"))
        queries = build_search_queries(profile, today=date(2025, 10, 1))
        assert len(queries) == 4
        assert queries[0] == (
            'is:issue is:open no:assignee comments:>=1 created:>2024-10-01 '
            'language:go label:"good first issue"'
        )
        assert queries[1].endswith('language:go label:"help wanted"')
        assert queries[2].endswith('topic:redis label:"good first issue"')

    def test_no_skills_no_queries(self):
        assert build_search_queries(Profile()) == []


class TestConversion:
    def test_extract_repo_name(self):
        assert extract_repo_name("https://api.github.com/repos/owner/name") == "owner/name"
        assert extract_repo_name("") == "unknown"

    def test_truncate_body(self):
        assert truncate_body(None) == ""
        assert truncate_body("x" * 500) == "x" * 500
        assert truncate_body("x" * 501) == "x" * 500 + "... [truncated]"

    def test_to_candidate(self):
        candidate = to_candidate(_item("a/b", 7, labels=("bug", "help wanted")))
        assert candidate.repo == "a/b"
        assert candidate.number == 7
        assert candidate.key == "a/b/7"
        assert candidate.labels == ("bug", "help wanted")
        assert candidate.created_at == date(2025, 5, 6)


class TestFetchRelevantIssues:
    def test_dedups_by_url_across_queries(self):
        client, session, sleeps = _client([
            FakeResponse(payload={"items": [_item("a/b", 1), _item("a/b", 2)]}),
            FakeResponse(payload={"items": [_item("a/b", 2), _item("c/d", 3)]}),
        ])
        issues = client.fetch_relevant_issues(Profile(skills=("Python",)))
        assert [i.key for i in issues] == ["a/b/1", "a/b/2", "c/d/3"]
        assert sleeps == [2.0]
        assert session.calls[0][2]["params"]["sort"] == "created"
        assert session.headers["Authorization"] == "token tok"

    def test_failed_query_is_skipped(self):
        client, _, _ = _client([
            FakeResponse(status_code=500, text="boom"),
            FakeResponse(payload={"items": [_item("c/d", 3)]}),
        ])
        issues = client.fetch_relevant_issues(Profile(skills=("Python",)))
        assert [i.key for i in issues] == ["c/d/3"]

    def test_auth_failure_aborts(self):
        client, _, _ = _client([FakeResponse(status_code=401)])
        with pytest.raises(GitHubAuthError):
            client.fetch_relevant_issues(Profile(skills=("Python",)))


class TestRequest:
    def test_retries_connection_errors(self):
        client, session, sleeps = _client([
            requests.exceptions.ConnectionError("down"),
            FakeResponse(payload={"items": []}),
        ])
        assert client.search_issues("q") == []
        assert len(session.calls) == 2
        assert sleeps == [2.0]

    def test_gives_up_after_retries(self):
        client, _, _ = _client([requests.exceptions.ConnectionError("down")] * 3)
        with pytest.raises(GitHubAPIError):
            client.search_issues("q")

    def test_rate_limit(self):
        client, _, _ = _client([
            FakeResponse(status_code=403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "99"}),
        ])
        with pytest.raises(RateLimitExceeded):
            client.search_issues("q")

    def test_secondary_rate_limit(self):
        client, _, _ = _client([
            FakeResponse(status_code=403, text="You have exceeded a secondary rate limit"),
        ])
        with pytest.raises(RateLimitExceeded):
            client.search_issues("q")

    def test_requires_token(self):
        with pytest.raises(GitHubAuthError):
            GitHubClient("", session=FakeSession([]))
