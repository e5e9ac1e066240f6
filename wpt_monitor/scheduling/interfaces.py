"""Typed interfaces for poll scheduling responsibilities."""

from typing import Protocol


class ActivationTriggerPort(Protocol):
    """Port definition for a time-based facility that fires the poll-cycle entry point."""

    def trigger_register(self, activation_id: str) -> None:
        """Register one periodic activation under the given id.

        Args:
            activation_id: Identifier for the new registration.
        """

    def trigger_remove(self, activation_id: str) -> bool:
        """Remove one periodic activation.

        Args:
            activation_id: Identifier of the registration.

        Returns:
            bool: True when a registration was removed, False when none existed.
        """

    def trigger_registered_ids(self) -> set[str]:
        """Return identifiers of all currently registered activations.

        Returns:
            set[str]: Registered activation ids.
        """


class PollSchedulerPort(Protocol):
    """Port definition for the poll activation lifecycle."""

    def scheduler_ensure_active(self) -> str:
        """Replace any existing activation with exactly one new activation.

        Returns:
            str: Identifier of the active activation.
        """

    def scheduler_deactivate(self) -> bool:
        """Remove the persisted activation and clear its identifier.

        Returns:
            bool: True when a registered activation was removed.
        """

    def scheduler_current_activation_id(self) -> str | None:
        """Return the persisted activation identifier, or None when inactive."""
