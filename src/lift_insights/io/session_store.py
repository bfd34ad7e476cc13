"""
JSONL-based storage for workout sessions, plus a JSON file of saved splits.

The analysis core never touches this module; callers load sessions here and
hand plain records to the analyzer.
"""

import json
from pathlib import Path

from ..core.models import WorkoutSession, WorkoutSplit
from .serializers import (
    ValidationError,
    dict_to_split,
    json_line_to_session,
    session_to_json_line,
    split_to_dict,
)


class SessionStore:
    """
    Manages workout sessions stored in JSONL format.

    The sessions file contains one JSON object per line, ordered by effective
    date.  A sibling splits.json holds saved workout splits.
    """

    def __init__(self, sessions_path: str | Path):
        """
        Initialize the session store.

        Args:
            sessions_path: Path to the JSONL sessions file
        """
        self.sessions_path = Path(sessions_path)
        self.splits_path = self.sessions_path.parent / "splits.json"

    def exists(self) -> bool:
        """Check if the sessions file exists."""
        return self.sessions_path.exists()

    def init(self) -> None:
        """
        Initialize an empty sessions file if it doesn't exist.

        Creates parent directories if needed.
        """
        self.sessions_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.sessions_path.exists():
            self.sessions_path.touch()

    def load_sessions(self) -> list[WorkoutSession]:
        """
        Load all sessions from the sessions file.

        Returns:
            List of WorkoutSession, sorted by effective date

        Raises:
            FileNotFoundError: If the sessions file doesn't exist
            ValidationError: If a line cannot be parsed
        """
        if not self.sessions_path.exists():
            raise FileNotFoundError(
                f"Sessions file not found: {self.sessions_path}. Log a session first."
            )

        sessions: list[WorkoutSession] = []

        with open(self.sessions_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    sessions.append(json_line_to_session(line))
                except ValidationError as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.sessions_path}: {e}"
                    ) from e

        sessions.sort(key=lambda s: s.effective_date)
        return sessions

    def append_session(self, session: WorkoutSession) -> None:
        """
        Add a session, replacing any stored session with the same id.

        Chronological order is maintained.

        Args:
            session: Session to store
        """
        self.init()
        sessions = [s for s in self.load_sessions() if s.id != session.id]
        sessions.append(session)
        sessions.sort(key=lambda s: s.effective_date)
        self._write_sessions(sessions)

    def _write_sessions(self, sessions: list[WorkoutSession]) -> None:
        with open(self.sessions_path, "w", encoding="utf-8") as f:
            for session in sessions:
                f.write(session_to_json_line(session) + "\n")

    def delete_session_at(self, index: int) -> WorkoutSession:
        """
        Delete the session at the given 0-based index in sorted order.

        Args:
            index: 0-based index

        Returns:
            The removed session

        Raises:
            IndexError: If index is out of range
        """
        sessions = self.load_sessions()
        if index < 0 or index >= len(sessions):
            raise IndexError(f"Session index {index} out of range (0-{len(sessions) - 1})")
        removed = sessions.pop(index)
        self._write_sessions(sessions)
        return removed

    def load_splits(self) -> list[WorkoutSplit]:
        """
        Load saved splits.

        Returns:
            Splits in save order; empty if none were saved

        Raises:
            ValidationError: If the splits file is malformed
        """
        if not self.splits_path.exists():
            return []
        try:
            with open(self.splits_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {self.splits_path}: {e}") from e
        if not isinstance(data, list):
            raise ValidationError(f"{self.splits_path} must contain a JSON list")
        return [dict_to_split(item) for item in data]

    def save_split(self, split: WorkoutSplit) -> None:
        """
        Save a split, replacing any stored split with the same id.

        Args:
            split: Split to save
        """
        self.splits_path.parent.mkdir(parents=True, exist_ok=True)
        splits = [s for s in self.load_splits() if s.id != split.id]
        splits.append(split)
        with open(self.splits_path, "w", encoding="utf-8") as f:
            json.dump([split_to_dict(s) for s in splits], f, indent=2)


def get_default_sessions_path() -> Path:
    """Default sessions file: ~/.lift-insights/sessions.jsonl."""
    return Path.home() / ".lift-insights" / "sessions.jsonl"
