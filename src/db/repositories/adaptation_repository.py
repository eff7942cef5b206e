"""SQLite-backed repository for workout adaptations.

Stores at most one adaptation per planned workout. Saving an adaptation
for a planned workout that already has one replaces it in place, enforced
by a UNIQUE constraint and an ``ON CONFLICT`` upsert in one transaction.
Unplanned adaptations have no planned workout and are keyed by activity.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ...exceptions import DatabaseError
from ...models.adaptation import Adaptation
from .base import Repository


class AdaptationRepository(Repository[Adaptation]):
    """
    SQLite-backed repository for Adaptation records.

    Entity ids are planned workout ids.
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize the adaptation repository.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self._ensure_table_exists()

    @contextmanager
    def _get_connection(self, operation: str = "query"):
        """Get database connection with context manager."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise DatabaseError(f"Cannot open adaptation store: {e}", operation=operation) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(f"Adaptation store {operation} failed: {e}", operation=operation) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_table_exists(self):
        """Ensure the adaptations table exists."""
        with self._get_connection("create") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS workout_adaptations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    planned_workout_id TEXT UNIQUE,
                    activity_id TEXT,
                    adaptation_type TEXT NOT NULL,
                    week_number INTEGER,
                    stimulus_achieved_pct INTEGER,
                    data_json TEXT NOT NULL,
                    detected_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_adaptations_activity
                ON workout_adaptations(activity_id)
            """)

    def _adaptation_to_row(self, adaptation: Adaptation) -> tuple:
        """Convert an Adaptation to a parameter tuple for insert."""
        return (
            adaptation.planned_workout_id,
            adaptation.activity_id,
            adaptation.adaptation_type.value,
            adaptation.week_number,
            adaptation.stimulus_achieved_pct,
            json.dumps(adaptation.to_dict()),
            adaptation.detected_at.isoformat(),
            datetime.now().isoformat(),
        )

    def _row_to_adaptation(self, row: sqlite3.Row) -> Adaptation:
        """Convert a database row to an Adaptation."""
        return Adaptation.from_dict(json.loads(row["data_json"]))

    def save(self, entity: Adaptation) -> Adaptation:
        """
        Upsert an adaptation.

        Planned adaptations replace the row for the same planned workout.
        Once an activity is matched to a planned workout, any unplanned row
        for that activity is removed. Unplanned adaptations replace the
        unplanned row for the same activity.

        Args:
            entity: The adaptation to save

        Returns:
            The saved adaptation
        """
        row = self._adaptation_to_row(entity)

        with self._get_connection("save") as conn:
            if entity.activity_id is not None:
                conn.execute(
                    "DELETE FROM workout_adaptations "
                    "WHERE planned_workout_id IS NULL AND activity_id = ?",
                    (entity.activity_id,),
                )

            if entity.planned_workout_id is None:
                conn.execute("""
                    INSERT INTO workout_adaptations
                    (planned_workout_id, activity_id, adaptation_type, week_number,
                     stimulus_achieved_pct, data_json, detected_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """, row)
            else:
                conn.execute("""
                    INSERT INTO workout_adaptations
                    (planned_workout_id, activity_id, adaptation_type, week_number,
                     stimulus_achieved_pct, data_json, detected_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(planned_workout_id) DO UPDATE SET
                        activity_id = excluded.activity_id,
                        adaptation_type = excluded.adaptation_type,
                        week_number = excluded.week_number,
                        stimulus_achieved_pct = excluded.stimulus_achieved_pct,
                        data_json = excluded.data_json,
                        detected_at = excluded.detected_at,
                        updated_at = excluded.updated_at
                """, row)

        return entity

    def get(self, entity_id: str) -> Optional[Adaptation]:
        """Retrieve the adaptation for a planned workout id."""
        return self.get_by_planned_workout(entity_id)

    def get_by_planned_workout(self, planned_workout_id: str) -> Optional[Adaptation]:
        """
        Retrieve the adaptation for a planned workout.

        Args:
            planned_workout_id: The planned workout id

        Returns:
            The adaptation if found, None otherwise
        """
        with self._get_connection("get") as conn:
            row = conn.execute(
                "SELECT * FROM workout_adaptations WHERE planned_workout_id = ?",
                (planned_workout_id,)
            ).fetchone()

            if row:
                return self._row_to_adaptation(row)
            return None

    def get_by_activity(self, activity_id: str) -> List[Adaptation]:
        """All adaptations that reference an activity."""
        return self.get_all(activity_id=activity_id)

    def _where(self, filters: dict) -> tuple:
        clauses = []
        params: list = []

        if "adaptation_type" in filters:
            clauses.append("adaptation_type = ?")
            params.append(getattr(filters["adaptation_type"], "value", filters["adaptation_type"]))

        if "activity_id" in filters:
            clauses.append("activity_id = ?")
            params.append(filters["activity_id"])

        if "week_number" in filters:
            clauses.append("week_number = ?")
            params.append(filters["week_number"])

        if filters.get("planned_only"):
            clauses.append("planned_workout_id IS NOT NULL")

        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        return where, params

    def get_all(
        self,
        limit: int = 100,
        offset: int = 0,
        **filters
    ) -> List[Adaptation]:
        """
        Retrieve adaptations matching the given filters.

        Args:
            limit: Maximum number of adaptations to return
            offset: Number of adaptations to skip
            **filters: Additional filter criteria:
                - adaptation_type: AdaptationType or its value
                - activity_id: Matched activity id
                - week_number: Plan week number
                - planned_only: Exclude unplanned adaptations

        Returns:
            List of adaptations, most recently detected first
        """
        where, params = self._where(filters)
        query = f"SELECT * FROM workout_adaptations{where} ORDER BY detected_at DESC, id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with self._get_connection("get_all") as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_adaptation(row) for row in rows]

    def delete(self, entity_id: str) -> bool:
        """
        Delete the adaptation for a planned workout.

        Returns:
            True if an adaptation was deleted, False if not found
        """
        with self._get_connection("delete") as conn:
            cursor = conn.execute(
                "DELETE FROM workout_adaptations WHERE planned_workout_id = ?",
                (entity_id,)
            )
            return cursor.rowcount > 0

    def exists(self, entity_id: str) -> bool:
        """Check if a planned workout has an adaptation."""
        with self._get_connection("exists") as conn:
            row = conn.execute(
                "SELECT 1 FROM workout_adaptations WHERE planned_workout_id = ?",
                (entity_id,)
            ).fetchone()
            return row is not None

    def count(self, **filters) -> int:
        """Count adaptations matching the given filters (same as get_all)."""
        where, params = self._where(filters)
        with self._get_connection("count") as conn:
            row = conn.execute(
                f"SELECT COUNT(*) as cnt FROM workout_adaptations{where}", params
            ).fetchone()
            return row["cnt"]
