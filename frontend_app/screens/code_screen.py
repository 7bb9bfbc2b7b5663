from __future__ import annotations

from threading import Thread

from kivy.app import App
from kivy.clock import Clock
from kivy.logger import Logger
from kivy.properties import BooleanProperty, NumericProperty, ObjectProperty, StringProperty
from kivy.uix.label import Label
from kivy.uix.popup import Popup
from kivy.uix.screenmanager import Screen
from kivy.uix.textinput import TextInput

from frontend_app.utils.api import ApiError, api_verify_code
from frontend_app.utils.otp_flow import CODE_LENGTH, CodeCells


def _popup(title: str, msg: str) -> None:
    def _open(*_):
        popup = Popup(
            title=title,
            content=Label(text=str(msg)),
            size_hint=(0.7, 0.3),
            auto_dismiss=True,
        )
        popup.open()
        Clock.schedule_once(lambda _dt: popup.dismiss(), 2)

    Clock.schedule_once(_open, 0)


class DigitInput(TextInput):
    """
    One code cell. Never edits its own text: keystrokes are forwarded to the
    owning CodeScreen, which re-renders every cell from CodeCells.
    """

    index = NumericProperty(0)
    owner = ObjectProperty(None, allownone=True)

    def insert_text(self, substring, from_undo=False):
        if self.owner is not None and substring:
            self.owner.on_cell_text(int(self.index), substring)

    def keyboard_on_key_down(self, window, keycode, text, modifiers):
        key = keycode[1]
        if self.owner is not None and key in ("backspace", "left", "right"):
            self.owner.on_cell_key(int(self.index), key)
            return True
        return super().keyboard_on_key_down(window, keycode, text, modifiers)


class CodeScreen(Screen):
    """Step 2: six digit cells for the emailed code."""

    email = StringProperty("")
    error_text = StringProperty("")
    is_processing = BooleanProperty(False)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.cells = CodeCells()

    def on_kv_post(self, base_widget):
        for widget in self._inputs():
            widget.owner = self

    def on_enter(self, *args):
        self._render()

    # -----------------------
    # Cells
    # -----------------------
    def _inputs(self):
        return [self.ids[f"code_{i}"] for i in range(CODE_LENGTH) if f"code_{i}" in self.ids]

    def _render(self) -> None:
        inputs = self._inputs()
        for i, widget in enumerate(inputs):
            widget.text = self.cells.digits[i]
        if inputs:
            # Focus after the current key event has been handled.
            target = inputs[self.cells.focus]
            Clock.schedule_once(lambda _dt: setattr(target, "focus", True), 0)

    def on_cell_text(self, index: int, text: str) -> None:
        if self.is_processing:
            return
        self.cells.enter(index, text)
        self._render()

    def on_cell_key(self, index: int, key: str) -> None:
        if self.is_processing:
            return
        if key == "backspace":
            self.cells.backspace(index)
        elif key == "left":
            self.cells.move(index, -1)
        elif key == "right":
            self.cells.move(index, 1)
        self._render()

    def set_email(self, email: str) -> None:
        self.email = email
        self.error_text = ""
        self.cells.clear()
        self._render()

    # -----------------------
    # Actions
    # -----------------------
    def go_back(self) -> None:
        app = App.get_running_app()
        if app is not None:
            app.on_back()

    def verify(self) -> None:
        if self.is_processing:
            return

        code = self.cells.value
        if not self.cells.is_complete:
            self.error_text = "Please fill in all 6 digits"
            return

        email = self.email
        self.error_text = ""
        self.is_processing = True

        def work():
            try:
                data = api_verify_code(email=email, code=code)
            except ApiError as exc:
                Logger.info("CodeScreen: verification failed: %s", exc)
                msg = str(exc)

                def show_error(*_):
                    self.is_processing = False
                    self.error_text = msg
                    # Email is kept; the user can retry the same code entry.
                    self.cells.clear()
                    self._render()

                Clock.schedule_once(show_error, 0)
                return

            opened = bool((data.get("data") or {}).get("emailOpened"))
            Logger.info("CodeScreen: verified %s (email opened=%s)", email, opened)

            def after(*_):
                self.is_processing = False
                self.cells.clear()
                _popup("Success", "Verification completed successfully!")
                app = App.get_running_app()
                if app is not None:
                    app.on_verified()

            Clock.schedule_once(after, 0)

        Thread(target=work, daemon=True).start()
