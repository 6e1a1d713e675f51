"""Run configuration and backend message models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MODEL = "openai/gpt-4o-mini"
DEFAULT_MAX_CONCURRENCY = 3
DEFAULT_TEMPERATURE = 0.2


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class RunOptions(BaseModel):
    """Per-run configuration handed to the orchestrator."""

    model_config = ConfigDict(frozen=True)

    model: str = DEFAULT_MODEL
    guidelines: str = ""  # Rendered guideline block (see load_guidelines)
    guideline_hash: str = ""
    max_concurrency: int = Field(default=DEFAULT_MAX_CONCURRENCY, ge=1)
    temperature: float = DEFAULT_TEMPERATURE
