"""User-facing texts for the chat and the paired device."""

from __future__ import annotations

from telegram_attestation.core.html_utils import escape_html, explorer_url

ATTEST_COMMAND = "[attest](command:attest)"

WELCOME = (
    "Welcome to the Obyte Telegram attestation bot! "
    "Your Telegram account will be linked to your Obyte wallet address "
    "and the attestation published on the Obyte ledger."
)
USERNAME_NOT_FOUND = (
    "We couldn't read your Telegram username. Please set a username in the Telegram "
    "settings and start the bot again."
)
INVALID_SESSION = (
    "Your attestation session is invalid or has expired. "
    "Please start again from your Obyte wallet."
)
ALREADY_ATTESTED = "You have already attested this Telegram account with the same wallet address."
INVALID_WALLET_ADDRESS = "This doesn't look like a valid Obyte wallet address, please try again."
ASK_ADDRESS = (
    "Please send me the wallet address you want to attest "
    "(click ... and Insert my address)."
)
UNKNOWN_ERROR = "Unknown error occurred"
PAYLOAD_ERROR = "UNKNOWN_ERROR, please try again later"
BOT_ERROR = "An error occurred while processing your request. Please try again later."


def ask_verify(wallet_address: str) -> str:
    return (
        f"Thanks! Now please prove that you own the address {wallet_address}: "
        f"[sign a message](sign-message-request:I own the address {wallet_address})"
    )


def wallet_verified(wallet_address: str) -> str:
    return f"Your wallet address {wallet_address} was successfully verified"


def continue_in_telegram(url: str) -> str:
    return f"Please continue in telegram: \n {url}"


def pairing_instructions(domain: str) -> str:
    return (
        "Sorry, but we couldn't find your wallet address. Please follow instructions from "
        f"<a href='{domain}/pairing'>Obyte wallet</a>"
    )


def already_attested_device(unit: str | None, *, testnet: bool) -> str:
    return (
        "Sorry, but you have already attested your wallet address with the same data. "
        f"Attestation unit: {explorer_url(unit or '', testnet=testnet)} . "
        "If you want to attest another wallet address or telegram account, "
        f"please use {ATTEST_COMMAND}"
    )


def attested_chat(unit: str, *, testnet: bool) -> str:
    href = explorer_url(unit, testnet=testnet, encode=True)
    return (
        "Your telegram account is now attested, attestation unit: "
        f'<a href="{href}">{escape_html(unit)}</a>'
    )


def attested_device(unit: str, *, testnet: bool) -> str:
    return (
        "Your telegram account is now attested, attestation unit: "
        f"{explorer_url(unit, testnet=testnet)}"
    )
