"""Application settings."""

import os
from typing import Dict, Optional
from pydantic import BaseModel

# Fields filled from the environment when not passed explicitly
ENV_FIELDS: Dict[str, str] = {
    "openai_api_key": "OPENAI_API_KEY",
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "webhook_id": "AFTERLINK_WEBHOOK_ID",
}


class Settings(BaseModel):
    """Afterlink configuration: generation provider, chat channel, correlation and storage."""

    # Text generation
    llm_provider: str = "openai"  # "openai" or "anthropic"
    llm_model: Optional[str] = None  # None picks the provider client's default
    llm_timeout: float = 60.0
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Chat channel
    chat_api_url: str = "https://chat.botpress.cloud"
    webhook_id: Optional[str] = None
    http_timeout: int = 10

    # Response correlation (attempts x interval is the hard wait ceiling)
    poll_interval_seconds: float = 1.0
    poll_max_attempts: int = 60
    min_response_length: int = 2

    # Row store
    db_path: str = "data/afterlink.db"

    # Search
    search_target_results: int = 3

    verbose: bool = False

    def __init__(self, **data):
        for field, env_var in ENV_FIELDS.items():
            if data.get(field) is None:
                data[field] = os.environ.get(env_var)
        super().__init__(**data)

    def get_llm_api_key(self) -> Optional[str]:
        """API key for the configured provider, or None."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }.get(self.llm_provider)

    @property
    def chat_base_url(self) -> Optional[str]:
        """Webhook-scoped base URL of the hosted chat API."""
        if not self.webhook_id:
            return None
        return f"{self.chat_api_url.rstrip('/')}/{self.webhook_id}"
