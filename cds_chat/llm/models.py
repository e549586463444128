"""Catalog of completion models the chat endpoint supports."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelOption:
    """A selectable model: display label plus the wire identifier."""

    label: str
    value: str


AVAILABLE_MODELS: tuple[ModelOption, ...] = (
    ModelOption("Claude 3.7", "claude-3.7-sonnet"),
    ModelOption("GPT 4", "gpt-4"),
    ModelOption("OpenAI GPT-4o", "gpt-4o"),
    ModelOption("OpenAI GPT-4o mini", "gpt-4o-mini"),
    ModelOption("OpenAI o1", "o1"),
    ModelOption("OpenAI o1-mini", "o1-mini"),
    ModelOption("OpenAI o1-preview", "o1-preview"),
    ModelOption("OpenAI o3-mini", "o3-mini"),
)

DEFAULT_MODEL = "claude-3.7-sonnet"
DEFAULT_TEMPERATURE = 0.3

_BY_VALUE: dict[str, ModelOption] = {m.value: m for m in AVAILABLE_MODELS}
_BY_LABEL: dict[str, ModelOption] = {m.label.lower(): m for m in AVAILABLE_MODELS}


def is_supported(value: str) -> bool:
    return value in _BY_VALUE


def label_for(value: str) -> str:
    """Return the display label for a model ID, or the ID itself."""
    option = _BY_VALUE.get(value)
    return option.label if option else value


def resolve(name: str) -> str | None:
    """Resolve a model ID or a case-insensitive label. Returns the ID or None."""
    name = name.strip()
    if name in _BY_VALUE:
        return name
    option = _BY_LABEL.get(name.lower())
    return option.value if option else None
