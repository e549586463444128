"""PreferenceStore: the user's model/temperature choice, persisted locally."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, ValidationError

from cds_chat.config import settings
from cds_chat.errors import InvalidPreferencesError, PersistenceError
from cds_chat.llm.models import AVAILABLE_MODELS, is_supported
from cds_chat.storage import LocalStorage

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class Preferences(BaseModel):
    """Model and sampling temperature sent with every completion request.

    Temperature is nominally in [0, 1] but is not range-checked here; it
    must be a finite number so it survives a JSON round trip.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    model: str
    temperature: float


def default_preferences() -> Preferences:
    return Preferences(model=settings.default_model, temperature=settings.default_temperature)


def decode_preferences(raw: str | None) -> Preferences:
    """Parse a stored JSON payload. Raises PersistenceError if unusable."""
    if raw is None:
        msg = "No stored preferences"
        raise PersistenceError(msg)
    try:
        return Preferences.model_validate_json(raw)
    except ValidationError as e:
        msg = f"Stored preferences are malformed: {e.error_count()} error(s)"
        raise PersistenceError(msg) from e


def validate_preferences(prefs: Preferences) -> None:
    """Strict-mode check: known model and temperature within [0, 1]."""
    if not is_supported(prefs.model):
        options = ", ".join(m.value for m in AVAILABLE_MODELS)
        msg = f"Unknown model '{prefs.model}'. Valid options: {options}"
        raise InvalidPreferencesError(msg)
    if not 0.0 <= prefs.temperature <= 1.0:
        msg = f"Temperature {prefs.temperature} is outside [0, 1]"
        raise InvalidPreferencesError(msg)


class PreferenceStore:
    """Holds the active Preferences and writes every change through to storage.

    Shared instance accessed via ``PreferenceStore.shared()``.  Pass an
    explicit *storage* for test isolation.

    Validation is permissive unless *strict* is enabled (``strict_preferences``
    setting): unknown models and out-of-range temperatures are stored and
    forwarded as-is.
    """

    _instance: PreferenceStore | None = None

    def __init__(
        self,
        storage: LocalStorage | None = None,
        *,
        key: str | None = None,
        strict: bool | None = None,
    ) -> None:
        self._storage = storage or LocalStorage()
        self._key = key or settings.preferences_key
        self._strict = settings.strict_preferences if strict is None else strict
        self._subscribers: list[Callable[[Preferences], None]] = []
        self._current = self._load()

    @classmethod
    def shared(cls) -> PreferenceStore:
        """Return the shared PreferenceStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Clear the shared instance (for tests)."""
        cls._instance = None

    def _load(self) -> Preferences:
        try:
            prefs = decode_preferences(self._storage.get_item(self._key))
        except PersistenceError as e:
            logger.warning("Using default preferences: %s", e)
            return default_preferences()
        logger.info("Loaded preferences: model=%s, temperature=%s", prefs.model, prefs.temperature)
        return prefs

    @property
    def strict(self) -> bool:
        return self._strict

    def get(self) -> Preferences:
        return self._current

    def set(self, prefs: Preferences) -> None:
        """Persist *prefs* and make them active.

        Raises PersistenceError if the write fails; the active preferences
        are left unchanged in that case.
        """
        if self._strict:
            validate_preferences(prefs)
        try:
            self._storage.set_item(self._key, prefs.model_dump_json())
        except OSError as e:
            logger.exception("Could not save preferences")
            msg = f"Could not save preferences: {e}"
            raise PersistenceError(msg) from e
        self._current = prefs
        logger.info("Preferences → model=%s, temperature=%s", prefs.model, prefs.temperature)
        self._notify()

    def update(self, **changes: object) -> Preferences:
        """Set a copy of the current preferences with *changes* applied."""
        prefs = Preferences.model_validate({**self._current.model_dump(), **changes})
        self.set(prefs)
        return prefs

    def reset(self) -> Preferences:
        """Restore and persist the defaults."""
        prefs = default_preferences()
        self.set(prefs)
        return prefs

    def subscribe(self, callback: Callable[[Preferences], None]) -> Callable[[], None]:
        """Register *callback* for changes. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._current)
            except Exception:
                logger.exception("Preference subscriber failed")
