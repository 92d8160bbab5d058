from __future__ import annotations

import html
from urllib.parse import quote

EXPLORER_HOST = "explorer.obyte.org"


def escape_html(text: str) -> str:
    """Escape text for Telegram's HTML parse mode, quotes included."""
    return html.escape(text, quote=True)


def explorer_url(ref: str, *, testnet: bool = False, encode: bool = False) -> str:
    """Link to a unit or address on the Obyte explorer.

    The testnet explorer lives on the ``testnetexplorer`` host, so the switch
    is a plain prefix rather than a subdomain.
    """
    prefix = "testnet" if testnet else ""
    path = quote(ref, safe="") if encode else ref
    return f"https://{prefix}{EXPLORER_HOST}/{path}"
