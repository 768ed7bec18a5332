# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-10-11
# Description: test_config.py
# -----------------------------------------------------------------------------
import pytest

from config.Config import Config


@pytest.fixture
def clean_env(monkeypatch):
    for env_name in Config.ENV_VARS.values():
        monkeypatch.delenv(env_name, raising=False)
    return monkeypatch


def test_direct_openai_from_env(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "  sk-test  ")

    cfg = Config.from_env()

    assert cfg.openai_api_key == "sk-test"
    assert not cfg.use_azure
    assert cfg.embed_model == "text-embedding-3-small"
    assert cfg.openai_azure_api_version == "2024-10-21"


def test_azure_from_env(clean_env):
    clean_env.setenv("AZURE_OPENAI_API_KEY", "azure-key")
    clean_env.setenv("AZURE_OPENAI_ENDPOINT", "https://example.openai.azure.com")
    clean_env.setenv("AZURE_OPENAI_EMBED_DEPLOYMENT", "embed-deployment")

    cfg = Config.from_env()

    assert cfg.use_azure
    assert cfg.embed_model == "embed-deployment"
    assert cfg.summary()["provider"] == "azure_openai"


def test_partial_azure_without_openai_key_fails(clean_env):
    clean_env.setenv("AZURE_OPENAI_API_KEY", "azure-key")

    with pytest.raises(ValueError) as exc:
        Config.from_env()

    assert "AZURE_OPENAI_ENDPOINT" in str(exc.value)
    assert "OPENAI_API_KEY" in str(exc.value)


def test_summary_has_no_secrets(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-secret")
    clean_env.setenv("OPENAI_EMBED_MODEL", "text-embedding-3-large")

    summary = Config.from_env().summary()

    assert "sk-secret" not in str(summary)
    assert summary["embed_model"] == "text-embedding-3-large"
