"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from agproxy.core.registry import set_context
from agproxy.main import create_app
from agproxy.settings import ProxySettings, SecuritySettings, TranslationDefaults
from agproxy.testing import FakeCredentialProvider, FakeInvoker
from agproxy.upstream.base import Credential


@pytest.fixture(autouse=True)
def reset_context() -> Generator[None, None, None]:
    """Drop the process-wide proxy context after every test."""
    yield
    set_context(None)


@pytest.fixture
def defaults() -> TranslationDefaults:
    return TranslationDefaults()


@pytest.fixture
def credential() -> Credential:
    return Credential(access_token="test-token", project_id="test-project", session_id="test-session")


# =============================================================================
# Application Fixtures
# =============================================================================


def build_client(
    invoker: FakeInvoker,
    *,
    credential_provider: Any = None,
    api_key: str | None = None,
    max_request_size: str = "50mb",
    defaults: TranslationDefaults | None = None,
) -> TestClient:
    """Build a TestClient around an app wired to fake collaborators.

    Args:
        invoker: Scripted upstream invoker
        credential_provider: Credential source (defaults to a fixed credential)
        api_key: Optional client API key to enforce
        max_request_size: Request size limit
        defaults: Translation defaults

    Returns:
        TestClient for the configured app
    """
    settings = ProxySettings(
        security=SecuritySettings(api_key=api_key, max_request_size=max_request_size),
        defaults=defaults or TranslationDefaults(),
    )
    app = create_app(
        settings,
        credential_provider=credential_provider or FakeCredentialProvider(),
        invoker=invoker,
    )
    return TestClient(app)


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def client(fake_invoker: FakeInvoker) -> Generator[TestClient, None, None]:
    """TestClient over an app that talks to ``fake_invoker``.

    Usage:
        def test_chat(client, fake_invoker):
            fake_invoker.events = [UpstreamEvent.text("Hi")]
            response = client.post("/v1/chat/completions", json=...)
    """
    with build_client(fake_invoker) as test_client:
        yield test_client


@pytest.fixture
def make_client() -> Generator[Any, None, None]:
    """Factory fixture for clients with non-default settings.

    Usage:
        def test_auth(make_client):
            client = make_client(FakeInvoker(), api_key="secret")
    """
    created: list[TestClient] = []

    def factory(invoker: FakeInvoker, **kwargs: Any) -> TestClient:
        test_client = build_client(invoker, **kwargs)
        test_client.__enter__()
        created.append(test_client)
        return test_client

    try:
        yield factory
    finally:
        for test_client in created:
            test_client.__exit__(None, None, None)
