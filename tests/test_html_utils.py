import pytest

from telegram_attestation.adapters.telegram import messages
from telegram_attestation.core import html_utils
from telegram_attestation.core.wallet_address import ObyteAddressValidator


def test_explorer_url_mainnet_and_testnet():
    assert html_utils.explorer_url("UNIT") == "https://explorer.obyte.org/UNIT"
    assert html_utils.explorer_url("UNIT", testnet=True) == "https://testnetexplorer.obyte.org/UNIT"


def test_explorer_url_percent_encodes_unit_hashes_when_asked():
    unit = "ab+c/d="

    assert html_utils.explorer_url(unit, encode=True) == "https://explorer.obyte.org/ab%2Bc%2Fd%3D"
    assert html_utils.explorer_url(unit) == "https://explorer.obyte.org/ab+c/d="


def test_escape_html_escapes_quotes():
    assert html_utils.escape_html("<a href='x'>\"&") == "&lt;a href=&#x27;x&#x27;&gt;&quot;&amp;"


def test_attested_chat_message_escapes_unit_text_and_encodes_link():
    text = messages.attested_chat("ab+c/d=", testnet=False)

    assert '<a href="https://explorer.obyte.org/ab%2Bc%2Fd%3D">ab+c/d=</a>' in text


def test_continue_in_telegram_format():
    assert messages.continue_in_telegram("https://t.me/x") == (
        "Please continue in telegram: \n https://t.me/x"
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("A" * 32, True),
        ("2" * 32, True),
        ("A" * 31, False),
        ("a" * 32, False),
        ("1" * 32, False),
        ("0" + "A" * 32, False),
        (None, False),
        (12345, False),
    ],
)
def test_wallet_address_shape(value, expected):
    assert ObyteAddressValidator().is_wallet_address(value) is expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("0" + "A" * 32, True),
        ("A" * 32, False),
        ("0" + "A" * 31, False),
        ("", False),
    ],
)
def test_device_address_shape(value, expected):
    assert ObyteAddressValidator().is_device_address(value) is expected
