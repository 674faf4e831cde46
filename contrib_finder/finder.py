from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from .dedup import add_matches, filter_new_issues
from .display import Progress
from .models import CandidateIssue, Match, Profile, State
from .report import write_markdown
from .state import StateStore

log = logging.getLogger(__name__)


class IssueSource(Protocol):
    def fetch_relevant_issues(self, profile: Profile) -> list[CandidateIssue]:
        ...


class Ranker(Protocol):
    def rank(self, profile: Profile, issues: Sequence[CandidateIssue]) -> list[Match]:
        ...


@dataclass(frozen=True)
class SearchSummary:
    found: int
    new: int
    new_matches: int
    total_matches: int

    @property
    def already_seen(self) -> int:
        return self.found - self.new

    @property
    def from_history(self) -> int:
        return max(0, self.total_matches - self.new_matches)


class ContributionFinder:
    """Runs one search: fetch, filter seen issues, rank, merge, persist."""

    def __init__(
        self,
        source: IssueSource,
        ranker: Ranker,
        store: StateStore,
        *,
        report_path: str | Path,
        max_matches: int,
        progress: Progress | None = None,
    ) -> None:
        self.source = source
        self.ranker = ranker
        self.store = store
        self.report_path = Path(report_path)
        self.max_matches = max_matches
        self.progress = progress or Progress(quiet=True)

    def run(self, profile: Profile) -> tuple[State, SearchSummary]:
        """Raises StateSaveError or ReportError when results cannot be written."""
        state = self.store.load()
        p = self.progress

        p.step(1, "Searching GitHub for relevant issues...")
        candidates = self.source.fetch_relevant_issues(profile)
        p.detail(f"Found {len(candidates)} issues across multiple queries")
        p.blank()

        p.step(2, "Filtering processed issues...")
        new_issues = filter_new_issues(state, candidates)
        p.detail(
            f"{len(candidates) - len(new_issues)} already evaluated, "
            f"{len(new_issues)} new issues to process"
        )
        p.blank()

        p.step(3, "Evaluating with AI...")
        matches: list[Match] = []
        if new_issues:
            p.detail(f"Sending {len(new_issues)} issues to Claude for evaluation...")
            try:
                matches = self.ranker.rank(profile, new_issues)
            except Exception as e:
                # New keys are already marked; the run still saves them.
                log.error("Ranking failed: %s", e)
                matches = []
            p.detail(f"Received {len(matches)} high-quality matches")
        else:
            p.detail("No new issues to evaluate")
        add_matches(state, matches, self.max_matches)
        p.blank()

        p.step(4, "Writing results...")
        write_markdown(self.report_path, state)
        self.store.save(state)
        p.detail(f"Updated {self.report_path}")

        summary = SearchSummary(
            found=len(candidates),
            new=len(new_issues),
            new_matches=len(matches),
            total_matches=len(state.all_matches),
        )
        log.info(
            "Run complete: %d found, %d new, %d new matches, %d total",
            summary.found, summary.new, summary.new_matches, summary.total_matches,
        )
        return state, summary
