"""Fixtures for tests that call the real market data providers."""

import pytest

from config import settings
from integrations.provider_registry import MarketDataProviderRegistry
from integrations.user_agents import UserAgentPool


@pytest.fixture(scope="module")
def registry():
    """Registry built from the real settings (keychain, env, .env)."""
    reg = MarketDataProviderRegistry()
    reg.initialize_default_providers(settings, UserAgentPool())
    yield reg
    reg.close()
