"""SQLite-backed repository for local app state.

Stores the latest configuration, athlete profile, current training plan and
feedback list, each serialized independently as JSON, plus an archive of
plans that have been superseded by iteration.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..config import AppConfiguration, get_settings
from ..exceptions import StorageError
from ..models.athlete import AthleteProfile
from ..models.feedback import DailyFeedback
from ..models.plans import TrainingPlan


SETTINGS_KEY = "settings"
PROFILE_KEY = "profile"
PLAN_KEY = "plan"
FEEDBACK_KEY = "feedback"


class AppStateRepository:
    """
    SQLite-backed repository for the athlete's app state.

    One row per state slot in ``app_state``; superseded plans are copied
    into ``plan_archive`` before being replaced.
    """

    def __init__(self, db_path: Optional[str | Path] = None):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file. If None, uses the
                    configured ``db_path`` setting.
        """
        self.db_path = Path(db_path) if db_path else Path(get_settings().db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables_exist()

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open state database: {e}", operation="connect") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"State database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_tables_exist(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS app_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS plan_archive (
                    id TEXT PRIMARY KEY,
                    week_number INTEGER NOT NULL,
                    payload TEXT NOT NULL,
                    archived_at TEXT NOT NULL
                )
            """)

    # ------------------------------------------------------------------
    # Raw slots
    # ------------------------------------------------------------------

    def _get(self, key: str) -> Optional[Any]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM app_state WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored {key} is corrupt: {e}", operation="read") from e

    def _set(self, key: str, value: Any) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO app_state (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                """,
                (key, json.dumps(value), now),
            )

    def _delete(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM app_state WHERE key = ?", (key,))

    def _load_model(self, key: str, model_cls):
        data = self._get(key)
        if data is None:
            return None
        try:
            return model_cls.model_validate(data)
        except PydanticValidationError as e:
            raise StorageError(f"Stored {key} is invalid: {e}", operation="read") from e

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> Optional[AppConfiguration]:
        return self._load_model(SETTINGS_KEY, AppConfiguration)

    def save_settings(self, config: AppConfiguration) -> None:
        self._set(SETTINGS_KEY, config.to_dict())

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def get_profile(self) -> Optional[AthleteProfile]:
        return self._load_model(PROFILE_KEY, AthleteProfile)

    def save_profile(self, profile: AthleteProfile) -> None:
        self._set(PROFILE_KEY, profile.to_dict())

    def clear_profile(self) -> None:
        self._delete(PROFILE_KEY)

    # ------------------------------------------------------------------
    # Current plan
    # ------------------------------------------------------------------

    def get_plan(self) -> Optional[TrainingPlan]:
        return self._load_model(PLAN_KEY, TrainingPlan)

    def save_plan(self, plan: TrainingPlan) -> None:
        self._set(PLAN_KEY, plan.to_dict())

    def clear_plan(self) -> None:
        self._delete(PLAN_KEY)

    def archive_plan(self, plan: TrainingPlan) -> None:
        """Copy a superseded plan into the archive."""
        now = datetime.now(timezone.utc).isoformat()
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO plan_archive (id, week_number, payload, archived_at)
                VALUES (?, ?, ?, ?)
                """,
                (plan.id, plan.week_number, json.dumps(plan.to_dict()), now),
            )

    def list_archived_plans(self) -> List[TrainingPlan]:
        """Archived plans, oldest week first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT payload FROM plan_archive ORDER BY week_number, archived_at"
            ).fetchall()
        try:
            return [TrainingPlan.model_validate(json.loads(row["payload"])) for row in rows]
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise StorageError(f"Stored plan archive is invalid: {e}", operation="read") from e

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    def list_feedback(self) -> List[DailyFeedback]:
        data = self._get(FEEDBACK_KEY) or []
        try:
            return [DailyFeedback.model_validate(item) for item in data]
        except PydanticValidationError as e:
            raise StorageError(f"Stored feedback is invalid: {e}", operation="read") from e

    def save_feedback(self, feedbacks: List[DailyFeedback]) -> None:
        self._set(FEEDBACK_KEY, [f.to_dict() for f in feedbacks])

    def add_feedback(self, feedback: DailyFeedback) -> None:
        self.save_feedback(self.list_feedback() + [feedback])

    def clear_feedback(self) -> None:
        self.save_feedback([])

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self, keep_settings: bool = True) -> None:
        """Delete profile, plan, feedback and archive; optionally settings too."""
        with self._get_connection() as conn:
            if keep_settings:
                conn.execute("DELETE FROM app_state WHERE key != ?", (SETTINGS_KEY,))
            else:
                conn.execute("DELETE FROM app_state")
            conn.execute("DELETE FROM plan_archive")
