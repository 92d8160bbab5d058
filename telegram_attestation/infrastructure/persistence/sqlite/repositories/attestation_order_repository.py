"""SQLite implementation of the attestation order store."""

from __future__ import annotations

import datetime as dt
import logging

from telegram_attestation.core.time_utils import UTC
from telegram_attestation.db.models import AttestationOrder as OrderRow
from telegram_attestation.domain.exceptions.domain_exceptions import InvalidStateTransitionError
from telegram_attestation.domain.models.attestation import (
    AttestationData,
    AttestationOrder,
    AttestationStatus,
)
from telegram_attestation.infrastructure.persistence.sqlite.base import SqliteBaseRepository

logger = logging.getLogger(__name__)


def _to_domain(row: OrderRow) -> AttestationOrder:
    return AttestationOrder(
        id=row.id,
        user_id=row.user_id,
        username=row.username,
        address=row.address,
        status=AttestationStatus(row.status),
        unit=row.unit,
        device_address=row.user_device_address,
    )


def _identity_query(data: AttestationData):
    return OrderRow.select().where(
        (OrderRow.user_id == data.user_id) & (OrderRow.username == data.username)
    )


class SqliteAttestationOrderStore(SqliteBaseRepository):
    """Orders persisted in ``attestation_orders``.

    Lookup for an identity prefers the order already bound to the wallet
    address; otherwise the identity's pending order (bound to some earlier
    address) is returned so it can be re-pointed. Attested orders for other
    addresses are never returned, so each address is attested independently.
    """

    async def get_attestation_order(
        self,
        data: AttestationData,
        address: str,
        *,
        exclude_attested: bool = False,
    ) -> AttestationOrder | None:
        def _get() -> AttestationOrder | None:
            query = _identity_query(data)
            if exclude_attested:
                query = query.where(OrderRow.status != AttestationStatus.ATTESTED.value)

            row = query.where(OrderRow.address == address).order_by(OrderRow.id.desc()).first()
            if row is None:
                row = (
                    query.where(OrderRow.status == AttestationStatus.PENDING.value)
                    .order_by(OrderRow.id.desc())
                    .first()
                )
            return _to_domain(row) if row else None

        return await self._execute(_get, operation_name="get_attestation_order", read_only=True)

    async def create_attestation_order(
        self, data: AttestationData, address: str, *, is_pending: bool = True
    ) -> int:
        status = AttestationStatus.PENDING if is_pending else AttestationStatus.ATTESTED

        def _create() -> int:
            row = OrderRow.create(
                user_id=data.user_id,
                username=data.username,
                address=address,
                status=status.value,
            )
            return row.id

        order_id = await self._execute(_create, operation_name="create_attestation_order")
        logger.info("attestation_order_created", extra={"order_id": order_id})
        return order_id

    async def update_wallet_address_in_attestation_order(self, order_id: int, address: str) -> None:
        def _update() -> int:
            return (
                OrderRow.update(address=address, updated_at=_now())
                .where(OrderRow.id == order_id)
                .execute()
            )

        await self._execute(_update, operation_name="update_wallet_address")

    async def update_device_address_in_attestation_order(
        self, order_id: int, device_address: str
    ) -> None:
        def _update() -> int:
            return (
                OrderRow.update(user_device_address=device_address, updated_at=_now())
                .where(OrderRow.id == order_id)
                .execute()
            )

        await self._execute(_update, operation_name="update_device_address")

    async def update_unit_and_change_status(
        self, data: AttestationData, address: str, unit: str
    ) -> None:
        """Mark the pending order for (identity, address) attested with ``unit``.

        Raises:
            InvalidStateTransitionError: No pending order matches, e.g. it was
                attested concurrently.
        """

        def _update() -> int:
            now = _now()
            return (
                OrderRow.update(
                    unit=unit,
                    status=AttestationStatus.ATTESTED.value,
                    attested_at=now,
                    updated_at=now,
                )
                .where(
                    (OrderRow.user_id == data.user_id)
                    & (OrderRow.username == data.username)
                    & (OrderRow.address == address)
                    & (OrderRow.status == AttestationStatus.PENDING.value)
                )
                .execute()
            )

        updated = await self._execute(_update, operation_name="update_unit_and_change_status")
        if not updated:
            raise InvalidStateTransitionError(
                "No pending attestation order to mark attested",
                {"user_id": data.user_id, "address": address},
            )


def _now() -> dt.datetime:
    return dt.datetime.now(UTC).replace(tzinfo=None)
