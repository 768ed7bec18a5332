# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-09-28
# Description: Config
# -----------------------------------------------------------------------------

import os
from dataclasses import dataclass
from dotenv import load_dotenv, find_dotenv

# Load .env once globally
load_dotenv(find_dotenv(usecwd=True), override=False)


@dataclass(frozen=True)
class Config:
    # OpenAI (direct)
    openai_api_key: str
    openai_base_url: str
    openai_embed_model: str

    # Azure OpenAI (used instead of the direct client when fully configured)
    openai_azure_api_key: str
    openai_azure_endpoint: str
    openai_azure_embed_deployment: str
    openai_azure_api_version: str

    # ---- Single source of truth: field_name -> ENV VAR NAME ----
    ENV_VARS = {
        # OpenAI direct
        "openai_api_key": "OPENAI_API_KEY",
        "openai_base_url": "OPENAI_BASE_URL",  # e.g. https://api.openai.com/v1
        "openai_embed_model": "OPENAI_EMBED_MODEL",

        # Azure OpenAI
        "openai_azure_api_key": "AZURE_OPENAI_API_KEY",
        "openai_azure_endpoint": "AZURE_OPENAI_ENDPOINT",
        "openai_azure_embed_deployment": "AZURE_OPENAI_EMBED_DEPLOYMENT",
        "openai_azure_api_version": "AZURE_OPENAI_API_VERSION",
    }

    DEFAULTS = {
        "openai_embed_model": "text-embedding-3-small",
        "openai_azure_api_version": "2024-10-21",
    }

    # Convenient *groups* for use in tests / health checks
    AZURE_OPENAI_ENV_VARS = (
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_EMBED_DEPLOYMENT",
    )

    OPENAI_DIRECT_ENV_VARS = (
        "OPENAI_API_KEY",
    )

    @staticmethod
    def from_env() -> "Config":
        """Build Config object from environment variables."""
        kwargs = {
            field_name: os.getenv(env_name, Config.DEFAULTS.get(field_name, "")).strip()
            for field_name, env_name in Config.ENV_VARS.items()
        }
        return Config(**kwargs)

    @property
    def use_azure(self) -> bool:
        return bool(
            self.openai_azure_api_key
            and self.openai_azure_endpoint
            and self.openai_azure_embed_deployment
        )

    @property
    def embed_model(self) -> str:
        """Model (or Azure deployment) name embeddings are requested from."""
        if self.use_azure:
            return self.openai_azure_embed_deployment
        return self.openai_embed_model or self.DEFAULTS["openai_embed_model"]

    def __post_init__(self):
        """
        Fail fast unless one complete credential set is present:
        either the direct OpenAI key, or all Azure OpenAI embedding settings.
        """
        if self.use_azure or self.openai_api_key:
            return

        missing_fields = [
            f for f in ("openai_api_key",) if not getattr(self, f)
        ] + [
            f
            for f in ("openai_azure_api_key", "openai_azure_endpoint", "openai_azure_embed_deployment")
            if not getattr(self, f)
        ]
        missing_env_vars = [self.ENV_VARS[f] for f in missing_fields]
        raise ValueError(
            f"Missing required environment variables (set OpenAI or Azure OpenAI): {missing_env_vars}"
        )

    def summary(self) -> dict:
        """Return a safe, non-sensitive summary for logging."""
        return {
            "provider": "azure_openai" if self.use_azure else "openai",
            "openai_base_url": self.openai_base_url,
            "openai_azure_endpoint": self.openai_azure_endpoint,
            "openai_azure_api_version": self.openai_azure_api_version,
            "embed_model": self.embed_model,
        }
