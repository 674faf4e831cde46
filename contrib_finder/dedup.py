"""Split candidates into new vs. already processed, and fold matches into history."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .models import CandidateIssue, Match, State

FOUND_AT_FORMAT = "%Y-%m-%d %H:%M"


def issue_key(repo: str, number: int) -> str:
    """Composite identity of an issue across runs, e.g. ``foo/bar/42``."""
    return f"{repo}/{number}"


def filter_new_issues(state: State, candidates: Iterable[CandidateIssue]) -> list[CandidateIssue]:
    """Return candidates not seen before, in input order, and mark them processed.

    Keys are added to ``state.processed_issues`` as each candidate is
    classified, so a later duplicate in the same batch is dropped and the
    issue is not sent to the ranker again even if ranking fails.
    """
    new_issues: list[CandidateIssue] = []
    processed = state.processed_issues
    for candidate in candidates:
        key = issue_key(candidate.repo, candidate.number)
        if key in processed:
            continue
        processed.add(key)
        new_issues.append(candidate)
    return new_issues


def add_matches(
    state: State,
    matches: Iterable[Match],
    max_matches: int,
    now: datetime | None = None,
) -> None:
    """Prepend ``matches`` to the history and cap it at ``max_matches``."""
    found_at = (now or datetime.now()).strftime(FOUND_AT_FORMAT)
    incoming = list(matches)
    for match in incoming:
        if not match.found_at:
            match.found_at = found_at

    if max_matches <= 0:
        state.all_matches = []
        return
    state.all_matches = (incoming + state.all_matches)[:max_matches]
