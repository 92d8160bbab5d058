"""Attestation domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime


class AttestationStatus(str, Enum):
    PENDING = "pending"
    ATTESTED = "attested"


@dataclass(frozen=True)
class AttestationData:
    """Telegram identity being attested."""

    user_id: int
    username: str

    def as_profile(self) -> dict[str, Any]:
        return {"userId": self.user_id, "username": self.username}


@dataclass(frozen=True)
class AttestationSession:
    """Short-lived pairing session created by the wallet-pairing flow."""

    id: str
    device_address: str
    wallet_address: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None


@dataclass
class AttestationOrder:
    """Persistent link between a Telegram identity and a wallet address."""

    id: int
    user_id: int
    username: str
    address: str
    status: AttestationStatus = AttestationStatus.PENDING
    unit: str | None = None
    device_address: str | None = None

    @property
    def is_attested(self) -> bool:
        return self.status is AttestationStatus.ATTESTED


@dataclass(frozen=True)
class StartPayload:
    """Decoded deep-link parameters; either field may be missing."""

    device_address: str | None
    session_id: str | None
