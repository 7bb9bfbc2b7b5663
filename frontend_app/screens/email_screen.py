from __future__ import annotations

from threading import Thread

from kivy.app import App
from kivy.clock import Clock
from kivy.logger import Logger
from kivy.properties import BooleanProperty, StringProperty
from kivy.uix.screenmanager import Screen

from frontend_app.utils.api import ApiError, api_send_verification_code
from frontend_app.utils.otp_flow import looks_like_email


class EmailScreen(Screen):
    """Step 1: collect the address and ask the server to email a code."""

    error_text = StringProperty("")
    is_processing = BooleanProperty(False)

    def _read_email(self) -> str:
        w = self.ids.get("email_input")
        return (w.text or "").strip() if w else ""

    def reset(self) -> None:
        w = self.ids.get("email_input")
        if w:
            w.text = ""
        self.error_text = ""
        self.is_processing = False

    def send_code(self) -> None:
        if self.is_processing:
            return

        email = self._read_email()
        if not looks_like_email(email):
            self.error_text = "Enter a valid email address."
            return

        self.error_text = ""
        self.is_processing = True

        def work():
            try:
                api_send_verification_code(email=email)
            except ApiError as exc:
                Logger.warning("EmailScreen: send failed: %s", exc)
                msg = str(exc)

                def show_error(*_):
                    self.error_text = msg
                    self.is_processing = False

                Clock.schedule_once(show_error, 0)
                return

            def after(*_):
                self.is_processing = False
                app = App.get_running_app()
                if app is not None:
                    app.on_code_sent(email)

            Clock.schedule_once(after, 0)

        Thread(target=work, daemon=True).start()
