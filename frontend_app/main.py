from __future__ import annotations

import os
import sys

# Running `python frontend_app/main.py` puts frontend_app/ on sys.path, not the
# repository root that the `frontend_app.*` imports need.
APP_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(APP_DIR, os.pardir))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from kivy.app import App
from kivy.lang import Builder
from kivy.logger import Logger
from kivy.uix.screenmanager import ScreenManager

from frontend_app.utils.otp_flow import COLLECTING_CODE, VerificationFlow

SCREEN_FOR_STATE = {COLLECTING_CODE: "code"}


class VerificationApp(App):
    def build(self):
        self.title = "Email Verification"
        Builder.load_file(os.path.join(APP_DIR, "kv", "screens.kv"))

        from frontend_app.screens.code_screen import CodeScreen
        from frontend_app.screens.email_screen import EmailScreen

        self.flow = VerificationFlow()
        self.sm = ScreenManager()
        self.sm.add_widget(EmailScreen(name="email"))
        self.sm.add_widget(CodeScreen(name="code"))
        self._show()
        return self.sm

    def _show(self) -> None:
        self.sm.current = SCREEN_FOR_STATE.get(self.flow.state, "email")
        Logger.info("VerificationApp: state=%s", self.flow.state)

    # Transitions, called by the screens on the main thread.
    def on_code_sent(self, email: str) -> None:
        self.flow.code_sent(email)
        self.sm.get_screen("code").set_email(email)
        self._show()

    def on_back(self) -> None:
        self.flow.back()
        self.sm.get_screen("email").reset()
        self._show()

    def on_verified(self) -> None:
        self.flow.verified()
        self.sm.get_screen("email").reset()
        self._show()


if __name__ == "__main__":
    VerificationApp().run()
