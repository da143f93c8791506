"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path
from typing import Any, Dict, List

import pytest

from condi.config.settings import Settings
from condi.container import Container, reset_container
from condi.core.parameters import ParameterStore
from condi.infrastructure.database.connection import DatabaseConnectionFactory
from condi.infrastructure.sources import SourceResolver


class RecordingHandle:
    """Database handle stand-in that records close attempts."""

    def __init__(self, name: str = "db", fail: bool = False):
        self.name = name
        self.fail = fail
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        if self.fail:
            raise RuntimeError(f"cannot close {self.name}")


class FakeEngine:
    """Engine stand-in returned by FakeEngineFactory."""

    def __init__(self, url: Any, **kwargs: Any):
        self.url = url
        self.kwargs = kwargs
        self.disposed = False

    def dispose(self) -> None:
        self.disposed = True


class FakeEngineFactory:
    """Callable with the create_engine signature that never touches the network."""

    def __init__(self) -> None:
        self.engines: List[FakeEngine] = []

    def __call__(self, url: Any, **kwargs: Any) -> FakeEngine:
        engine = FakeEngine(url, **kwargs)
        self.engines.append(engine)
        return engine


def write_secret(secrets_dir: Path, name: str, content: str) -> Path:
    path = secrets_dir / name
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def secrets_dir(tmp_path: Path) -> Path:
    """Empty secrets directory."""
    directory = tmp_path / "secrets"
    directory.mkdir()
    return directory


@pytest.fixture
def environ() -> Dict[str, str]:
    """Injected environment; tests mutate it instead of os.environ."""
    return {}


@pytest.fixture
def settings(secrets_dir: Path) -> Settings:
    return Settings(
        SECRETS_DIR=str(secrets_dir),
        ENV_PREFIX="CONDI_",
        RELOAD_ON_SIGHUP=False,
        _env_file=None,
    )


@pytest.fixture
def resolver(settings: Settings, environ: Dict[str, str]) -> SourceResolver:
    return SourceResolver.from_settings(settings, environ=environ)


@pytest.fixture
def store(resolver: SourceResolver) -> ParameterStore:
    return ParameterStore(resolver=resolver)


@pytest.fixture
def engine_factory() -> FakeEngineFactory:
    return FakeEngineFactory()


@pytest.fixture
def connection_factory(settings: Settings, engine_factory: FakeEngineFactory) -> DatabaseConnectionFactory:
    return DatabaseConnectionFactory(settings, engine_factory=engine_factory)


@pytest.fixture
def container(
    settings: Settings,
    environ: Dict[str, str],
    connection_factory: DatabaseConnectionFactory
) -> Container:
    return Container(settings=settings, environ=environ, connection_factory=connection_factory)


@pytest.fixture(autouse=True)
def _reset_process_container():
    yield
    reset_container()


# Pytest configuration
def pytest_collection_modifyitems(config: Any, items: List[Any]) -> None:
    """Add markers based on file location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
