"""Claude-based ranking of candidate issues against a developer profile."""

from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import requests

from .config import (
    ANTHROPIC_API_URL,
    ANTHROPIC_API_VERSION,
    ANTHROPIC_MAX_TOKENS,
    ANTHROPIC_MODEL,
    MAX_RANKED_MATCHES,
)
from .errors import RankerError
from .models import CandidateIssue, Match, Profile

log = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are helping find GitHub OSS contribution opportunities for a developer with {experience} years of experience.

Developer Profile:
{profile}

GitHub Issues to evaluate:
{issues}

Your task: Carefully evaluate each issue and return ONLY the best 3-{limit} matches that would be genuinely good first contributions.

Selection criteria (ALL must be met):
1. Clear scope: The issue has a well-defined problem and expected outcome
2. Skill match: Requires skills the developer has
3. Appropriate complexity: Not trivial, but achievable in a few hours to a day
4. Active project: The issue has recent activity and the project seems maintained
5. Welcoming: Issue description is friendly and provides context
6. Realistic: Avoid issues that are too vague, too large, or require deep domain knowledge

For each match, provide a SPECIFIC reason explaining:
- What skill(s) from their profile apply
- Why the complexity level is appropriate
- What makes this a good first contribution to this project

Return ONLY matching issues in this JSON format:
{{
  "matches": [
    {{
      "repo": "owner/repo-name",
      "issue_number": 123,
      "title": "Issue title",
      "url": "https://github.com/...",
      "match_reason": "Specific explanation: which skills apply, why it's good scope, what makes it welcoming",
      "estimated_effort": "small|medium|large",
      "labels": ["label1", "label2"],
      "created_at": "2024-01-01"
    }}
  ]
}}

Be VERY selective - quality over quantity. Return at most {limit} matches. If no issues are genuinely good fits, return empty matches array."""


def build_prompt(profile: Profile, issues: Sequence[CandidateIssue]) -> str:
    return PROMPT_TEMPLATE.format(
        experience=profile.experience_years,
        profile=json.dumps(profile.to_dict()),
        issues=json.dumps([issue.to_dict() for issue in issues]),
        limit=MAX_RANKED_MATCHES,
    )


def extract_json(text: str) -> str:
    """Strip a surrounding markdown code fence, if any."""
    text = text.strip()
    if not text.startswith("```"):
        return text
    start = text.find("\n")
    end = text.rfind("```")
    if start == -1 or end <= start:
        return text
    return text[start + 1:end].strip()


def parse_matches(text: str) -> list[Match]:
    """Parse the model's ``{"matches": [...]}`` reply. Raises RankerError."""
    try:
        payload = json.loads(extract_json(text))
    except json.JSONDecodeError as e:
        raise RankerError(f"response is not JSON: {e}") from e
    if not isinstance(payload, dict):
        raise RankerError("response JSON is not an object")

    items = payload.get("matches") or []
    if not isinstance(items, list):
        raise RankerError("'matches' is not a list")

    matches: list[Match] = []
    for item in items:
        if not isinstance(item, dict):
            log.debug("Skipping non-object match entry: %r", item)
            continue
        item = {k: v for k, v in item.items() if k != "found_at"}
        try:
            matches.append(Match.from_dict(item))
        except (TypeError, ValueError, OverflowError) as e:
            log.debug("Skipping malformed match entry %r: %s", item, e)
    return matches


class AnthropicRanker:
    """Asks the Anthropic Messages API to pick the best matches."""

    def __init__(
        self,
        api_key: str,
        model: str = ANTHROPIC_MODEL,
        max_tokens: int = ANTHROPIC_MAX_TOKENS,
        session: requests.Session | None = None,
        timeout_s: float = 120.0,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.session.headers.update({
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "content-type": "application/json",
        })

    def _complete(self, prompt: str) -> str:
        body: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        try:
            resp = self.session.post(ANTHROPIC_API_URL, json=body, timeout=self.timeout_s)
        except requests.exceptions.RequestException as e:
            raise RankerError(f"request failed: {e}") from e
        if resp.status_code >= 400:
            raise RankerError(f"Anthropic API error {resp.status_code}: {resp.text[:500]}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise RankerError(f"invalid JSON from API: {e}") from e
        content = payload.get("content") if isinstance(payload, dict) else None
        texts = [
            block.get("text", "")
            for block in content or []
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        if not texts:
            raise RankerError("response has no text content")
        return texts[0]

    def rank(self, profile: Profile, issues: Sequence[CandidateIssue]) -> list[Match]:
        """Return the model's picks; any failure yields an empty list."""
        if not issues:
            return []
        try:
            text = self._complete(build_prompt(profile, issues))
        except RankerError as e:
            log.error("Error calling Claude: %s", e)
            return []
        try:
            matches = parse_matches(text)
        except RankerError as e:
            log.error("Error parsing Claude response: %s", e)
            log.debug("Response text: %s", text)
            return []
        log.info("Claude found %d good matches", len(matches))
        return matches
