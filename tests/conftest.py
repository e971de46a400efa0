"""Root test configuration."""

import logging

import pytest
import structlog
from stacklayer.program import App
from stacklayer.providers import RecordingProvider


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def provider():
    """In-memory provider recording every constructed resource."""
    return RecordingProvider()


@pytest.fixture
def make_app():
    """Build an App without the settings-driven tagging policy."""

    def factory(program=None, *, name="test-app", policies=(), **kwargs):
        return App(name, program or (lambda app: None), policies=policies, **kwargs)

    return factory


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Run from an empty project dir with no home config and fresh settings."""
    from stacklayer.config.settings import get_settings

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("STACKLAYER_CONFIG_PATH", raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()
