from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .errors import ReportError
from .models import Match, State

EMPTY_MESSAGE = "No OSS opportunities found yet. Check back later!"


def _format_match(match: Match) -> list[str]:
    lines = [
        f"## [{match.repo}] {match.title}",
        "",
        f"- **URL**: {match.url}",
        f"- **Effort**: {match.estimated_effort}",
        f"- **Created**: {match.created_at}",
        f"- **Found**: {match.found_at}",
    ]
    if match.labels:
        lines.append(f"- **Labels**: {', '.join(match.labels)}")
    lines += ["", "**Why this fits you:**", match.match_reason, "", "---", ""]
    return lines


def render_markdown(state: State, now: datetime | None = None) -> str:
    """Render every match in stored (newest-first) order."""
    now = now or datetime.now()
    lines = [
        "# GitHub OSS Contribution Opportunities",
        "",
        f"Last updated: {now.strftime('%Y-%m-%d %H:%M')}",
        "",
        f"Total opportunities: {len(state.all_matches)}",
        "",
        "---",
        "",
    ]
    if not state.all_matches:
        lines.append(EMPTY_MESSAGE)
    for match in state.all_matches:
        lines += _format_match(match)
    return "\n".join(lines) + "\n"


def write_markdown(path: str | Path, state: State, now: datetime | None = None) -> Path:
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(render_markdown(state, now), encoding="utf-8")
    except OSError as e:
        raise ReportError(f"error writing markdown file {p}: {e}") from e
    return p
