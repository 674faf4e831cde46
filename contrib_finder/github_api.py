"""GitHub issue search: builds profile queries and returns candidate issues."""

import logging
import time
from datetime import date, datetime, timedelta
from typing import Callable, Optional

import requests

from .config import (
    GITHUB_API_URL,
    ISSUE_BODY_MAX_CHARS,
    ISSUE_BODY_TRUNCATION_MARKER,
    SEARCH_BASE_CONSTRAINTS,
    SEARCH_LABELS,
    SEARCH_PER_PAGE,
    SEARCH_QUERY_DELAY_S,
    SEARCH_WINDOW_DAYS,
    SKILL_QUALIFIERS,
)
from .errors import GitHubAPIError, GitHubAuthError, RateLimitExceeded
from .models import CandidateIssue, Profile

logger = logging.getLogger(__name__)

BACKOFF_MULTIPLIER = 1.5


def map_skill(skill: str) -> str:
    """Map a profile skill to a GitHub search qualifier."""
    key = skill.strip().lower()
    return SKILL_QUALIFIERS.get(key) or f"topic:{key}"


def build_search_queries(profile: Profile, today: Optional[date] = None) -> list:
    """One query per (skill, label) pair, in profile order."""
    since = (today or date.today()) - timedelta(days=SEARCH_WINDOW_DAYS)
    base = f"{SEARCH_BASE_CONSTRAINTS} created:>{since.isoformat()}"
    queries = []
    for skill in profile.skills:
        qualifier = map_skill(skill)
        for label in SEARCH_LABELS:
            queries.append(f'{base} {qualifier} label:"{label}"')
    return queries


def extract_repo_name(repository_url: str) -> str:
    """``https://api.github.com/repos/owner/name`` -> ``owner/name``."""
    parts = [p for p in (repository_url or "").rstrip("/").split("/") if p]
    if len(parts) >= 2:
        return f"{parts[-2]}/{parts[-1]}"
    return "unknown"


def truncate_body(body: Optional[str]) -> str:
    body = body or ""
    if len(body) > ISSUE_BODY_MAX_CHARS:
        return body[:ISSUE_BODY_MAX_CHARS] + ISSUE_BODY_TRUNCATION_MARKER
    return body


def _parse_created_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def to_candidate(item: dict) -> CandidateIssue:
    """Convert a search API item into a CandidateIssue."""
    return CandidateIssue(
        repo=extract_repo_name(item.get("repository_url", "")),
        number=int(item.get("number") or 0),
        title=item.get("title") or "",
        url=item.get("html_url") or "",
        labels=tuple(
            label.get("name", "") for label in item.get("labels") or [] if isinstance(label, dict)
        ),
        body=truncate_body(item.get("body")),
        created_at=_parse_created_date(item.get("created_at")),
    )


class GitHubClient:
    """Searches GitHub issues over the REST API."""

    def __init__(self, token: str, session: Optional[requests.Session] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 query_delay: float = SEARCH_QUERY_DELAY_S):
        if not token:
            raise GitHubAuthError("No GitHub token given. Set GITHUB_TOKEN.")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })
        self.sleep = sleep
        self.query_delay = query_delay

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        url = f"{GITHUB_API_URL}{endpoint}"
        retries = 2
        backoff = 2.0

        for attempt in range(retries + 1):
            try:
                response = self.session.request(method, url, timeout=30, **kwargs)
            except requests.exceptions.RequestException as e:
                if attempt < retries:
                    logger.warning("Request failed (%s). Retrying in %.1f seconds.", e, backoff)
                    self.sleep(backoff)
                    backoff *= BACKOFF_MULTIPLIER
                    continue
                raise GitHubAPIError(f"Request failed after {retries} retries: {e}") from e

            if response.status_code == 401:
                raise GitHubAuthError(
                    "GitHub authentication failed (401). Your token may be invalid or expired."
                )
            if response.status_code == 403:
                text = response.text.lower()
                if "secondary rate limit" in text:
                    raise RateLimitExceeded(
                        "Hit GitHub secondary rate limit. Wait 5-10 minutes before trying again."
                    )
                if response.headers.get("X-RateLimit-Remaining") == "0":
                    reset = response.headers.get("X-RateLimit-Reset")
                    raise RateLimitExceeded(f"GitHub rate limit exceeded. Resets at epoch={reset}.")
                raise GitHubAPIError("GitHub API access denied (403)")
            if response.status_code >= 400:
                raise GitHubAPIError(f"GitHub API error {response.status_code}: {response.text[:500]}")
            return response

        raise GitHubAPIError("Max retries exceeded")

    def search_issues(self, query: str) -> list:
        """Newest issues matching ``query`` (one page)."""
        response = self._request("GET", "/search/issues", params={
            "q": query,
            "sort": "created",
            "order": "desc",
            "per_page": SEARCH_PER_PAGE,
        })
        try:
            payload = response.json()
        except ValueError as e:
            raise GitHubAPIError(f"Invalid JSON from search: {e}") from e
        return payload.get("items") or []

    def fetch_relevant_issues(self, profile: Profile) -> list:
        """Run every profile query and return candidates deduplicated by URL.

        Failed queries are logged and skipped; authentication failures abort.
        """
        candidates = []
        seen_urls = set()

        for i, query in enumerate(build_search_queries(profile)):
            if i > 0:
                self.sleep(self.query_delay)
            logger.debug("Searching issues: %s", query)
            try:
                items = self.search_issues(query)
            except GitHubAuthError:
                raise
            except GitHubAPIError as e:
                logger.warning("Search query failed (%s): %s", query, e)
                continue

            for item in items:
                url = item.get("html_url") or ""
                if url in seen_urls:
                    continue
                seen_urls.add(url)
                candidates.append(to_candidate(item))

        logger.info("Found %d unique issues", len(candidates))
        return candidates
