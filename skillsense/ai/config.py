import os
from dataclasses import dataclass

from skillsense.core.config import settings


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    max_input_chars: int
    temperature: float


def load_ai_config() -> AIConfig:
    return AIConfig(
        provider=settings.ai_provider,
        model=settings.ai_model,
        max_input_chars=settings.ai_max_input_chars,
        temperature=float(os.getenv("AI_TEMPERATURE", "0.2")),
    )
