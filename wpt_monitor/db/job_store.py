"""Database service for the fixed-capacity table of outstanding jobs."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Engine, bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from wpt_monitor.domain import PendingJob

from .interfaces import DuplicateJobKeyError, JobStoreCapacityError, JobStorePort

_EMPTY_SLOT_VALUE = ""


class SQLAlchemyJobStoreService(JobStorePort):
    """SQLAlchemy-backed job store over a fixed number of slot rows.

    Each slot row holds one `(target_key, handle)` pair; empty slots hold empty
    strings. No state is cached in memory: every call reads and writes the
    table in its own transaction, so a process that did not create the jobs
    can advance them.
    """

    def __init__(self, engine: Engine, capacity: int):
        """Initialize job store service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.
            capacity: Fixed number of job slots.

        Raises:
            ValueError: Raised when engine is None or capacity is below one.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._engine = engine
        self._capacity = capacity

    def db_job_capacity(self) -> int:
        return self._capacity

    def db_job_put(self, job: PendingJob) -> None:
        """Insert one job into the lowest free slot.

        Args:
            job: Job to track.

        Raises:
            DuplicateJobKeyError: Raised when the key already occupies a slot.
            JobStoreCapacityError: Raised when no free slot remains.
            ValueError: Raised when key or handle are blank.
            RuntimeError: Raised when persistence fails.
        """

        target_key = self._validate_non_empty_text(job.target_key, "target_key")
        handle = self._validate_non_empty_text(job.handle, "handle")

        try:
            with self._engine.begin() as connection:
                self._db_ensure_slots(connection)
                slot_rows = connection.execute(
                    text("SELECT slot_index, target_key FROM pending_job ORDER BY slot_index")
                ).mappings().all()
                if any(row["target_key"] == target_key for row in slot_rows):
                    raise DuplicateJobKeyError(f"job already outstanding for target_key={target_key}")

                free_slot_index = next(
                    (
                        row["slot_index"]
                        for row in slot_rows
                        if row["target_key"] == _EMPTY_SLOT_VALUE and row["slot_index"] < self._capacity
                    ),
                    None,
                )
                if free_slot_index is None:
                    raise JobStoreCapacityError(f"all {self._capacity} job slots are occupied")

                connection.execute(
                    text(
                        "UPDATE pending_job SET "
                        "target_key = :target_key, handle = :handle, updated_at_utc = :updated_at_utc "
                        "WHERE slot_index = :slot_index"
                    ).bindparams(bindparam("updated_at_utc", type_=DateTime(timezone=True))),
                    {
                        "target_key": target_key,
                        "handle": handle,
                        "updated_at_utc": datetime.now(timezone.utc),
                        "slot_index": free_slot_index,
                    },
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to put pending job") from error

    def db_job_remove_by_key(self, target_key: str) -> bool:
        """Clear the slot holding the key; removing an absent key is a no-op.

        Args:
            target_key: Logical target identifier.

        Returns:
            bool: True when a slot was cleared.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        normalized_target_key = target_key.strip()
        if not normalized_target_key:
            return False

        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    text(
                        "UPDATE pending_job SET "
                        "target_key = :empty, handle = :empty, updated_at_utc = :updated_at_utc "
                        "WHERE target_key = :target_key"
                    ).bindparams(bindparam("updated_at_utc", type_=DateTime(timezone=True))),
                    {
                        "empty": _EMPTY_SLOT_VALUE,
                        "updated_at_utc": datetime.now(timezone.utc),
                        "target_key": normalized_target_key,
                    },
                )
                return result.rowcount > 0
        except SQLAlchemyError as error:
            raise RuntimeError("failed to remove pending job") from error

    def db_job_list_all(self) -> list[PendingJob]:
        """Return occupied slots in slot order.

        Returns:
            list[PendingJob]: Snapshot of outstanding jobs.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        "SELECT target_key, handle FROM pending_job "
                        "WHERE target_key <> :empty "
                        "ORDER BY slot_index"
                    ),
                    {"empty": _EMPTY_SLOT_VALUE},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list pending jobs") from error

        return [PendingJob(target_key=row["target_key"], handle=row["handle"]) for row in rows]

    def db_job_is_empty(self) -> bool:
        """Return whether every slot is empty.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                occupied_count = connection.execute(
                    text("SELECT COUNT(*) FROM pending_job WHERE target_key <> :empty"),
                    {"empty": _EMPTY_SLOT_VALUE},
                ).scalar_one()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to count pending jobs") from error
        return int(occupied_count) == 0

    def _db_ensure_slots(self, connection) -> None:
        """Insert missing empty slot rows up to the configured capacity.

        Args:
            connection: Active SQLAlchemy connection inside a transaction.
        """

        existing_indexes = set(connection.execute(text("SELECT slot_index FROM pending_job")).scalars().all())
        missing_rows = [
            {"slot_index": slot_index, "empty": _EMPTY_SLOT_VALUE}
            for slot_index in range(self._capacity)
            if slot_index not in existing_indexes
        ]
        if missing_rows:
            connection.execute(
                text(
                    "INSERT INTO pending_job (slot_index, target_key, handle) "
                    "VALUES (:slot_index, :empty, :empty)"
                ),
                missing_rows,
            )

    def _validate_non_empty_text(self, value: str, field_name: str) -> str:
        """Validate required text input and return stripped value.

        Raises:
            ValueError: Raised when value is blank.
        """

        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError(f"{field_name} must not be blank")
        return stripped_value
