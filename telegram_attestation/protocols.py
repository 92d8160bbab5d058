"""Protocol definitions for the capabilities the attestation strategy depends on.

The strategy never reaches for a concrete store or client; the composition
root injects implementations of these contracts, and tests inject fakes.
"""

from typing import Protocol

from telegram_attestation.domain.models.attestation import (
    AttestationData,
    AttestationOrder,
    AttestationSession,
)


class SessionStore(Protocol):
    """Pairing sessions keyed by device address."""

    async def get_session(self, device_address: str | None) -> AttestationSession | None:
        """Get the live session for a device.

        Returns:
            The session, or None when absent or expired.

        """
        ...

    async def get_session_wallet_address(self, device_address: str | None) -> str | None:
        """Get the verified wallet address bound to the device's session."""
        ...

    async def delete_session(self, device_address: str) -> None:
        """Delete the device's session."""
        ...


class OrderStore(Protocol):
    """Attestation order persistence."""

    async def get_attestation_order(
        self,
        data: AttestationData,
        address: str,
        *,
        exclude_attested: bool = False,
    ) -> AttestationOrder | None:
        """Find the order for an identity and wallet address.

        Returns:
            The matching order or None if not found.

        """
        ...

    async def create_attestation_order(
        self, data: AttestationData, address: str, *, is_pending: bool = True
    ) -> int:
        """Create a new order.

        Returns:
            The ID of the created order.

        """
        ...

    async def update_wallet_address_in_attestation_order(self, order_id: int, address: str) -> None:
        """Replace the wallet address on an order."""
        ...

    async def update_device_address_in_attestation_order(
        self, order_id: int, device_address: str
    ) -> None:
        """Attach the paired device to an order."""
        ...

    async def update_unit_and_change_status(
        self, data: AttestationData, address: str, unit: str
    ) -> None:
        """Record the issuance unit and mark the order attested."""
        ...


class Validator(Protocol):
    def is_wallet_address(self, value: object) -> bool: ...


class Notifier(Protocol):
    """Paired-device messaging channel."""

    async def send_message_to_device(
        self, device_address: str, message_type: str, text: str
    ) -> None: ...


class Issuer(Protocol):
    """Posts attestation profiles to the ledger."""

    async def post_attestation_profile(self, address: str, data: AttestationData) -> str:
        """Post the profile for ``address``.

        Returns:
            The unit hash of the ledger transaction.

        """
        ...
