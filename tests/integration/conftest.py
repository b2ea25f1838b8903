"""Shared fixtures for HTTP-level tests against the FastAPI app."""

from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from src.core.config.settings import RelaySettings
from web.app import create_app


@pytest.fixture
def make_client(make_model_client) -> Callable[..., TestClient]:
    """
    Build a started TestClient.

    The primary model answers "NONE" unless ``model_reply`` is given, so codes
    come from the regex fallback by default.
    """
    clients = []

    def _make(settings: RelaySettings = None, model_reply: str = "NONE", **kwargs) -> TestClient:
        app = create_app(
            settings=settings or RelaySettings(_env_file=None),
            model_client=make_model_client(model_reply),
            **kwargs,
        )
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> Iterator[TestClient]:
    return make_client()
