"""Provider configuration resolved once and injected into adapters."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """Credentials and endpoints for the Pica passthrough providers.

    Loaded from environment variables (case-insensitive) or a ``.env`` file.
    Missing credentials are not an error here; the adapter that needs them
    fails its own call instead, so the rest of the pipeline keeps running.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    pica_secret_key: str = ""
    pica_perplexity_connection_key: str = ""
    pica_gemini_connection_key: str = ""
    pica_openai_connection_key: str = ""

    pica_base_url: str = "https://api.picaos.com/v1/passthrough"

    perplexity_action_id: str = "conn_mod_def::GCY0iK-iGks::TKAh9sv2Ts2HJdLJc5a60A"
    gemini_action_id: str = "conn_mod_def::GCmd5BQE388::PISTzTbvRSqXx0N0rMa-Lw"
    openai_action_id: str = "conn_mod_def::GDzgi1QfvM4::4OjsWvZhRxmAVuLAuWgfVA"

    search_model: str = "sonar"
    reasoning_model: str = "gemini-1.5-flash"
    classification_model: str = "gpt-4o"

    request_timeout_s: float = Field(default=60.0, gt=0, description="Upper bound for one upstream call")


@lru_cache(maxsize=1)
def get_settings() -> ProviderSettings:
    """Cached settings for production wiring."""
    return ProviderSettings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
