"""Persistent run state: processed issue keys and the match history."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from datetime import datetime
from pathlib import Path

from .errors import StateSaveError
from .models import State

log = logging.getLogger(__name__)


class StateStore:
    """Load / save / clear a JSON state file.

    ``load`` never raises: a missing, unreadable or malformed file yields an
    empty State, and the cause goes to ``logger``. Losing history costs at
    most a repeated ranking of issues already seen.
    """

    def __init__(self, path: str | Path, logger: logging.Logger | None = None):
        self.path = Path(path)
        self.log = logger or log

    # ── Persistence ─────────────────────────────────────────────

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> State:
        if not self.path.exists():
            self.log.debug("No state file at %s, starting fresh", self.path)
            return State()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.log.warning("Error reading state %s: %s. Starting fresh.", self.path, e)
            return State()
        try:
            return State.from_dict(json.loads(raw))
        except (ValueError, TypeError, OverflowError, RecursionError) as e:
            self.log.warning("Error parsing state %s: %s. Starting fresh.", self.path, e)
            return State()

    def save(self, state: State) -> None:
        """Stamp ``last_run`` and atomically replace the state file."""
        stamp = datetime.now().astimezone().isoformat(timespec="seconds")
        data = state.to_dict()
        data["last_run"] = stamp
        payload = json.dumps(data, indent=2)

        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise StateSaveError(f"error saving state to {self.path}: {e}") from e
        state.last_run = stamp
        self.log.debug(
            "Saved state to %s (%d processed, %d matches)",
            self.path, len(state.processed_issues), len(state.all_matches),
        )

    def clear(self) -> None:
        """Discard all history by saving a fresh empty State."""
        self.save(State())

    # ── Query operations ────────────────────────────────────────

    def stats(self) -> tuple[int, int]:
        """Return ``(processed_count, match_count)`` without writing."""
        state = self.load()
        return len(state.processed_issues), len(state.all_matches)
