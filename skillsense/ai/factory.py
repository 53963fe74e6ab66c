import logging
from functools import lru_cache

from skillsense.ai.config import load_ai_config
from skillsense.ai.types import AIClient
from skillsense.core.errors import ExternalServiceError

from skillsense.ai.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_ai_client() -> AIClient:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        try:
            return OpenAIProvider(
                model=cfg.model,
                temperature=cfg.temperature,
                max_input_chars=cfg.max_input_chars,
            )
        except RuntimeError as exc:
            logger.error("ai_provider_unconfigured provider=%s: %s", cfg.provider, exc)
            raise ExternalServiceError("AI provider is not configured.") from exc

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
