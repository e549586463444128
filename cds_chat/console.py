"""Line-oriented console front end for the chat controller."""

from __future__ import annotations

import asyncio
import logging
import math
import sys
from typing import TYPE_CHECKING, TextIO

from cds_chat.chat.controller import ConversationController
from cds_chat.chat.message import Role
from cds_chat.errors import InvalidPreferencesError, PersistenceError
from cds_chat.llm.models import AVAILABLE_MODELS, label_for, resolve

if TYPE_CHECKING:
    from collections.abc import Callable

    from cds_chat.preferences import PreferenceStore

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /model [name]         Show or change the AI model
  /temperature [value]  Show or change the AI temperature
  /settings             Show the current settings
  /reset                Restore default settings
  /help                 Show this help
  /quit                 Exit"""


class ConsoleChat:
    """REPL that feeds lines to a ConversationController and prints replies.

    Rendering is driven by the controller's change subscription: any
    message appended since the last render is written to *output*.
    """

    def __init__(
        self,
        controller: ConversationController,
        preferences: PreferenceStore,
        *,
        read_line: Callable[[str], str] = input,
        output: TextIO | None = None,
    ) -> None:
        self.controller = controller
        self.preferences = preferences
        self._read_line = read_line
        self._out = output or sys.stdout
        self._rendered = 0
        self._pending: asyncio.Task[None] | None = None
        self._unsubscribe = controller.subscribe(lambda _c: self.render())

    def write(self, text: str) -> None:
        print(text, file=self._out, flush=True)

    def render(self) -> None:
        """Print any history entries not yet shown."""
        history = self.controller.history
        for message in history[self._rendered :]:
            if message.role == Role.USER:
                continue
            self.write(f"AI: {message.content}")
        self._rendered = len(history)

    # -- Commands --------------------------------------------------------------

    def _show_settings(self) -> None:
        prefs = self.preferences.get()
        self.write(f"AI MODEL: {label_for(prefs.model)} ({prefs.model})")
        self.write(f"AI TEMPERATURE: {prefs.temperature}")

    def _cmd_model(self, arg: str) -> None:
        if not arg:
            self._show_settings()
            options = ", ".join(m.value for m in AVAILABLE_MODELS)
            self.write(f"Options: {options}")
            return
        model = resolve(arg)
        if model is None:
            options = ", ".join(m.value for m in AVAILABLE_MODELS)
            self.write(f"Unknown model '{arg}'. Valid options: {options}")
            return
        try:
            self.preferences.update(model=model)
        except PersistenceError as e:
            self.write(str(e))
            return
        self.write(f"AI MODEL → {label_for(model)}")

    def _cmd_temperature(self, arg: str) -> None:
        if not arg:
            self.write(f"AI TEMPERATURE: {self.preferences.get().temperature}")
            return
        try:
            value = float(arg)
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            self.write(f"Temperature must be a number, got '{arg}'")
            return
        try:
            self.preferences.update(temperature=value)
        except (InvalidPreferencesError, PersistenceError) as e:
            self.write(str(e))
            return
        self.write(f"AI TEMPERATURE → {value}")

    def _cmd_reset(self) -> None:
        try:
            self.preferences.reset()
        except PersistenceError as e:
            self.write(str(e))
            return
        self._show_settings()

    def handle_command(self, line: str) -> bool:
        """Run a slash command. Returns False when the session should end."""
        name, _, arg = line[1:].partition(" ")
        name = name.lower()
        arg = arg.strip()

        if name in ("quit", "exit"):
            return False
        if name == "model":
            self._cmd_model(arg)
        elif name == "temperature":
            self._cmd_temperature(arg)
        elif name == "settings":
            self._show_settings()
        elif name == "reset":
            self._cmd_reset()
        elif name == "help":
            self.write(HELP_TEXT)
        else:
            self.write(f"Unknown command '/{name}'. Type /help for options.")
        return True

    # -- Main loop -------------------------------------------------------------

    async def handle_line(self, line: str) -> bool:
        """Process one input line. Returns False when the session should end.

        Chat messages are dispatched in the background so commands can still
        be typed while a reply is outstanding.
        """
        line = line.strip()
        if not line:
            return True
        if line.startswith("/"):
            return self.handle_command(line)
        if self.controller.is_sending or (self._pending is not None and not self._pending.done()):
            self.write("Still waiting for the previous reply...")
            return True
        self._pending = self.controller.submit(line)
        return True

    async def drain(self) -> None:
        """Wait for the outstanding reply, if any."""
        if self._pending is not None:
            await self._pending
            self._pending = None

    async def run(self) -> None:
        self.render()
        try:
            while True:
                try:
                    line = await asyncio.to_thread(self._read_line, "You: ")
                except EOFError:
                    break
                if not await self.handle_line(line):
                    break
            await self.drain()
        finally:
            self._unsubscribe()
        logger.info("Console session ended")
