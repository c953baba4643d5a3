"""Shared pytest configuration and fixtures."""

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-real",
        action="store_true",
        default=False,
        help="Run tests that make real network requests",
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--run-real"):
        skip_real = pytest.mark.skip(reason="needs --run-real option to run")
        for item in items:
            if "real" in item.keywords:
                item.add_marker(skip_real)


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr("ecourts_resolver.providers.http_client.time.sleep", lambda _: None)
