from __future__ import annotations

import re

_OBYTE_ADDRESS_RE = re.compile(r"^[A-Z2-7]{32}$")
# Device addresses are a "0" version byte followed by a wallet-style body.
_OBYTE_DEVICE_ADDRESS_RE = re.compile(r"^0[A-Z2-7]{32}$")


class ObyteAddressValidator:
    """Shape checks for Obyte wallet and device addresses.

    Checksum verification is left to the ledger node; an address that passes
    here but fails there is rejected by the issuer.
    """

    def is_wallet_address(self, value: object) -> bool:
        return isinstance(value, str) and bool(_OBYTE_ADDRESS_RE.match(value))

    def is_device_address(self, value: object) -> bool:
        return isinstance(value, str) and bool(_OBYTE_DEVICE_ADDRESS_RE.match(value))
