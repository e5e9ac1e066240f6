"""Database service for the persisted owner-to-activation mapping."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Engine, bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import SchedulerStatePort


class SQLAlchemySchedulerStateService(SchedulerStatePort):
    """SQLAlchemy-backed key/value store of active activation ids per owner."""

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_scheduler_get_activation_id(self, owner_id: str) -> str | None:
        """Return the persisted activation id for the owner.

        Args:
            owner_id: Process/owner identifier.

        Returns:
            str | None: Activation id, or None when no activation is recorded.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        normalized_owner_id = self._validate_owner_id(owner_id)
        try:
            with self._engine.connect() as connection:
                activation_id = connection.execute(
                    text("SELECT activation_id FROM scheduler_state WHERE owner_id = :owner_id"),
                    {"owner_id": normalized_owner_id},
                ).scalar_one_or_none()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to read scheduler state") from error

        if not activation_id:
            return None
        return str(activation_id)

    def db_scheduler_set_activation_id(self, owner_id: str, activation_id: str) -> None:
        """Persist the activation id for the owner, replacing any previous one.

        Raises:
            ValueError: Raised when owner or activation id are blank.
            RuntimeError: Raised when persistence fails.
        """

        normalized_owner_id = self._validate_owner_id(owner_id)
        normalized_activation_id = activation_id.strip()
        if not normalized_activation_id:
            raise ValueError("activation_id must not be blank")

        parameters = {
            "owner_id": normalized_owner_id,
            "activation_id": normalized_activation_id,
            "updated_at_utc": datetime.now(timezone.utc),
        }
        try:
            with self._engine.begin() as connection:
                updated = connection.execute(
                    text(
                        "UPDATE scheduler_state SET activation_id = :activation_id, updated_at_utc = :updated_at_utc "
                        "WHERE owner_id = :owner_id"
                    ).bindparams(bindparam("updated_at_utc", type_=DateTime(timezone=True))),
                    parameters,
                )
                if updated.rowcount == 0:
                    connection.execute(
                        text(
                            "INSERT INTO scheduler_state (owner_id, activation_id, updated_at_utc) "
                            "VALUES (:owner_id, :activation_id, :updated_at_utc)"
                        ).bindparams(bindparam("updated_at_utc", type_=DateTime(timezone=True))),
                        parameters,
                    )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to persist scheduler state") from error

    def db_scheduler_clear_activation_id(self, owner_id: str) -> None:
        """Delete the owner's activation row when present.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        normalized_owner_id = self._validate_owner_id(owner_id)
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text("DELETE FROM scheduler_state WHERE owner_id = :owner_id"),
                    {"owner_id": normalized_owner_id},
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to clear scheduler state") from error

    def _validate_owner_id(self, owner_id: str) -> str:
        stripped_owner_id = owner_id.strip()
        if not stripped_owner_id:
            raise ValueError("owner_id must not be blank")
        return stripped_owner_id
