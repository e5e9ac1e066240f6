"""Poll activation lifecycle backed by persisted scheduling state."""

from __future__ import annotations

from typing import Callable
from uuid import uuid4

import structlog

from wpt_monitor.db import SchedulerStatePort

from .interfaces import ActivationTriggerPort, PollSchedulerPort

logger = structlog.get_logger(__name__)


class PollScheduler(PollSchedulerPort):
    """Keeps at most one periodic poll activation per owner.

    The activation id is persisted before the registration is created, so a
    failed registration leaves a dangling id (cleared by the next
    `scheduler_deactivate` or replaced by the next `scheduler_ensure_active`)
    rather than an untracked registration.
    """

    def __init__(
        self,
        state_repository: SchedulerStatePort,
        activation_trigger: ActivationTriggerPort,
        owner_id: str,
        activation_id_factory: Callable[[], str] | None = None,
    ):
        """Initialize poll scheduler.

        Args:
            state_repository: Persisted owner-to-activation mapping.
            activation_trigger: Time-based facility that fires poll cycles.
            owner_id: Key under which the activation id is persisted.
            activation_id_factory: Optional provider of new activation ids.

        Raises:
            ValueError: Raised when dependencies are missing or owner id is blank.
        """

        if state_repository is None:
            raise ValueError("state_repository must not be None")
        if activation_trigger is None:
            raise ValueError("activation_trigger must not be None")
        normalized_owner_id = owner_id.strip()
        if not normalized_owner_id:
            raise ValueError("owner_id must not be blank")

        self._state_repository = state_repository
        self._activation_trigger = activation_trigger
        self._owner_id = normalized_owner_id
        self._activation_id_factory = activation_id_factory or (lambda: f"poll-cycle-{uuid4().hex}")

    def scheduler_current_activation_id(self) -> str | None:
        return self._state_repository.db_scheduler_get_activation_id(self._owner_id)

    def scheduler_ensure_active(self) -> str:
        """Destroy any persisted activation, then create and persist exactly one new one.

        Returns:
            str: Identifier of the new activation.
        """

        previous_activation_id = self._state_repository.db_scheduler_get_activation_id(self._owner_id)
        if previous_activation_id is not None:
            removed = self._activation_trigger.trigger_remove(previous_activation_id)
            logger.info(
                "Replacing poll activation",
                owner_id=self._owner_id,
                activation_id=previous_activation_id,
                registration_found=removed,
            )

        activation_id = self._activation_id_factory()
        self._state_repository.db_scheduler_set_activation_id(self._owner_id, activation_id)
        self._activation_trigger.trigger_register(activation_id)
        logger.info("Poll activation registered", owner_id=self._owner_id, activation_id=activation_id)
        return activation_id

    def scheduler_deactivate(self) -> bool:
        """Remove the persisted activation when registered and always clear its id.

        Returns:
            bool: True when a registered activation was removed.
        """

        activation_id = self._state_repository.db_scheduler_get_activation_id(self._owner_id)
        removed = False
        if activation_id is not None and activation_id in self._activation_trigger.trigger_registered_ids():
            removed = self._activation_trigger.trigger_remove(activation_id)
        self._state_repository.db_scheduler_clear_activation_id(self._owner_id)

        if activation_id is not None and not removed:
            logger.warning(
                "Cleared dangling poll activation id",
                owner_id=self._owner_id,
                activation_id=activation_id,
            )
        else:
            logger.info("Poll activation deactivated", owner_id=self._owner_id, activation_id=activation_id)
        return removed
