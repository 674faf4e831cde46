from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from .dedup import issue_key
from .errors import ProfileError

MIN_EXPERIENCE_YEARS = 0
MAX_EXPERIENCE_YEARS = 50


@dataclass(frozen=True)
class Profile:
    name: str = ""
    skills: tuple[str, ...] = ()
    interests: tuple[str, ...] = ()
    experience_years: int = 0

    def validate(self) -> None:
        if not self.skills:
            raise ProfileError(
                "no skills specified. Use --skills or set profile.skills in the config file."
            )
        if not MIN_EXPERIENCE_YEARS <= self.experience_years <= MAX_EXPERIENCE_YEARS:
            raise ProfileError(
                f"experience years must be between {MIN_EXPERIENCE_YEARS} and {MAX_EXPERIENCE_YEARS}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "skills": list(self.skills),
            "interests": list(self.interests),
            "experience_years": self.experience_years,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        return cls(
            name=str(data.get("name") or ""),
            skills=tuple(str(s) for s in data.get("skills") or ()),
            interests=tuple(str(s) for s in data.get("interests") or ()),
            experience_years=int(data.get("experience_years") or 0),
        )


@dataclass(frozen=True)
class CandidateIssue:
    repo: str
    number: int
    title: str
    url: str
    labels: tuple[str, ...] = ()
    body: str = ""
    created_at: date | None = None

    @property
    def key(self) -> str:
        return issue_key(self.repo, self.number)

    def to_dict(self) -> dict[str, Any]:
        return {
            "repo": self.repo,
            "number": self.number,
            "title": self.title,
            "url": self.url,
            "labels": list(self.labels),
            "body": self.body,
            "created_at": self.created_at.isoformat() if self.created_at else "",
        }


@dataclass
class Match:
    repo: str
    issue_number: int
    title: str = ""
    url: str = ""
    match_reason: str = ""
    estimated_effort: str = ""
    labels: list[str] = field(default_factory=list)
    created_at: str = ""
    found_at: str = ""

    @property
    def key(self) -> str:
        return issue_key(self.repo, self.issue_number)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Match":
        labels = data.get("labels") or []
        if not isinstance(labels, list):
            raise ValueError(f"labels must be a list, got {type(labels).__name__}")
        return cls(
            repo=str(data.get("repo") or ""),
            issue_number=int(data.get("issue_number") or 0),
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            match_reason=str(data.get("match_reason") or ""),
            estimated_effort=str(data.get("estimated_effort") or ""),
            labels=[str(label) for label in labels],
            created_at=str(data.get("created_at") or ""),
            found_at=str(data.get("found_at") or ""),
        )


@dataclass
class State:
    """Processed-issue keys plus the newest-first match history."""

    last_run: str = ""
    processed_issues: set[str] = field(default_factory=set)
    all_matches: list[Match] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        # JSON has no set type; keys map to a constant true.
        return {
            "last_run": self.last_run,
            "processed_issues": {key: True for key in sorted(self.processed_issues)},
            "all_matches": [m.to_dict() for m in self.all_matches],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "State":
        """Build a State from decoded JSON. Raises ValueError on a wrong shape."""
        if not isinstance(data, dict):
            raise ValueError(f"state must be a JSON object, got {type(data).__name__}")

        processed = data.get("processed_issues") or {}
        if not isinstance(processed, dict):
            raise ValueError("processed_issues must be a JSON object")

        matches = data.get("all_matches") or []
        if not isinstance(matches, list) or not all(isinstance(m, dict) for m in matches):
            raise ValueError("all_matches must be a list of objects")

        return cls(
            last_run=str(data.get("last_run") or ""),
            processed_issues={str(k) for k, seen in processed.items() if seen},
            all_matches=[Match.from_dict(m) for m in matches],
        )
