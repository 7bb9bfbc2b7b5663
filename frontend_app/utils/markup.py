from __future__ import annotations

from kivy.utils import escape_markup


def code_sent_to(email: str) -> str:
    """Subtitle for the code screen; the address is shown literally, never as markup."""
    return "We sent a 6-digit code to\n[b]%s[/b]" % escape_markup(email or "")
