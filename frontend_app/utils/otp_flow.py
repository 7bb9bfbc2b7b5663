"""
Widget-free state for the two-step verification form.

The Kivy screens only mirror these objects: ``VerificationFlow`` decides which
screen is showing, ``CodeCells`` owns the six digit cells and which one has
focus.
"""

from __future__ import annotations

import re
from typing import List

CODE_LENGTH = 6
EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
_NON_DIGITS = re.compile(r"\D", re.ASCII)

COLLECTING_EMAIL = "collecting-email"
COLLECTING_CODE = "collecting-code"


def looks_like_email(text: str) -> bool:
    return bool(EMAIL_RE.fullmatch(text or ""))


class VerificationFlow:
    def __init__(self) -> None:
        self.state = COLLECTING_EMAIL
        self.email = ""

    def code_sent(self, email: str) -> None:
        """Only call after the server accepted the send request."""
        self.email = email
        self.state = COLLECTING_CODE

    def back(self) -> None:
        self.state = COLLECTING_EMAIL
        self.email = ""

    def verified(self) -> None:
        self.back()


class CodeCells:
    def __init__(self, length: int = CODE_LENGTH) -> None:
        self.length = length
        self.digits: List[str] = [""] * length
        self.focus = 0

    @property
    def value(self) -> str:
        return "".join(self.digits)

    @property
    def is_complete(self) -> bool:
        return all(self.digits)

    def enter(self, index: int, text: str) -> None:
        """Typed or pasted text landing in cell ``index``."""
        if len(text) > 1:
            # Paste / autofill always fills from the first cell.
            self.distribute(text)
            return
        if not text.isdigit() or not text.isascii():
            return
        self.digits[index] = text
        self.focus = min(index + 1, self.length - 1)

    def backspace(self, index: int) -> None:
        if self.digits[index]:
            self.digits[index] = ""
            self.focus = index
        elif index > 0:
            self.focus = index - 1

    def move(self, index: int, step: int) -> None:
        self.focus = max(0, min(self.length - 1, index + step))

    def distribute(self, text: str) -> None:
        digits = _NON_DIGITS.sub("", text)[: self.length]
        self.digits = list(digits) + [""] * (self.length - len(digits))
        if digits:
            self.focus = min(len(digits), self.length - 1)

    def clear(self) -> None:
        self.digits = [""] * self.length
        self.focus = 0
