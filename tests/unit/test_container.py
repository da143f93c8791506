"""
Tests for the Container facade: bootstrap, reload, teardown and process accessors.
"""

import logging
import signal
import threading

import pytest

from condi.container import BootstrapReport, Container, get_container, initialize
from condi.core.exceptions import (
    ContainerNotInitializedError,
    DatabaseNotRegisteredError,
    MalformedParameterError,
    UnsupportedDriverError,
)
from tests.conftest import RecordingHandle, write_secret


def _configure_postgres(secrets_dir, environ, host="db.internal"):
    write_secret(secrets_dir, "database_host", host)
    environ.update({
        "CONDI_DATABASE_DRIVER": "postgres",
        "CONDI_DATABASE_PORT": "5432",
        "CONDI_DATABASE_NAME": "orders",
    })


class TestBootstrap:
    """Initial scan and default database"""

    def test_no_database_host_opens_nothing(self, container, engine_factory):
        report = container.bootstrap()

        assert report.database_configured is False
        assert report.ok is True
        assert engine_factory.engines == []
        assert container.get_databases() == []
        with pytest.raises(DatabaseNotRegisteredError):
            container.get_default_database()

    def test_loads_secrets_and_environment(self, container, secrets_dir, environ):
        write_secret(secrets_dir, "api_key", "k")
        environ.update({"CONDI_WORKERS": "4", "CONDI_DEBUG": "true", "UNRELATED": "x"})

        report = container.bootstrap()

        assert report.secrets_loaded == 1
        assert report.environment_loaded == 2
        assert container.get_parameters() == {"api_key": "k", "workers": "4", "debug": "true"}
        assert container.get_int("workers") == 4
        assert container.get_bool("debug") is True

    def test_secret_beats_environment(self, container, secrets_dir, environ):
        write_secret(secrets_dir, "color", "secret")
        environ["CONDI_COLOR"] = "env"

        container.bootstrap()

        assert container.get_string("color") == "secret"

    @pytest.mark.parametrize("file_name,content", [("color", ""), ("COLOR", "secret")])
    def test_read_through_agrees_with_bootstrap(self, settings, environ, secrets_dir, file_name, content):
        write_secret(secrets_dir, file_name, content)
        environ["CONDI_COLOR"] = "env"

        lazy = Container(settings=settings, environ=environ)
        loaded = Container(settings=settings, environ=environ)
        loaded.bootstrap()

        assert lazy.get_string("color") == loaded.get_string("color") == content

    def test_explicit_value_beats_loaded_value(self, container, secrets_dir):
        write_secret(secrets_dir, "color", "secret")
        container.set_parameter("color", "explicit")

        report = container.bootstrap()

        assert report.skipped_explicit == 1
        assert container.get_string("color") == "explicit"

    def test_opens_default_database(self, container, secrets_dir, environ, engine_factory):
        _configure_postgres(secrets_dir, environ)

        report = container.bootstrap()

        assert report.database_configured is True
        engine = container.get_default_database()
        assert engine is engine_factory.engines[0]
        assert engine.url.host == "db.internal"
        assert engine.url.port == 5432
        assert engine.url.database == "orders"

    def test_unsupported_driver_is_logged_critical(self, container, environ, engine_factory, caplog):
        environ.update({
            "CONDI_DATABASE_HOST": "db",
            "CONDI_DATABASE_DRIVER": "mysql",
            "CONDI_COLOR": "blue",
        })

        with caplog.at_level(logging.WARNING):
            report = container.bootstrap()

        assert isinstance(report.database_error, UnsupportedDriverError)
        assert report.ok is False
        assert engine_factory.engines == []
        assert any(
            r.levelno == logging.CRITICAL and "mysql" in r.getMessage()
            for r in caplog.records
        )
        # parameters stay usable after the failed database step
        assert container.get_string("color") == "blue"

        with pytest.raises(UnsupportedDriverError):
            report.raise_for_error()

    def test_malformed_port_reported(self, container, environ, caplog):
        environ.update({"CONDI_DATABASE_HOST": "db", "CONDI_DATABASE_PORT": "fifty"})

        with caplog.at_level(logging.ERROR):
            report = container.bootstrap()

        assert isinstance(report.database_error, MalformedParameterError)
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_report_carries_reload_id(self, container):
        report = container.bootstrap()

        assert isinstance(report, BootstrapReport)
        assert report.reload_id
        assert container.last_report is report


class TestReload:
    """Re-running bootstrap against changed sources"""

    def test_reload_picks_up_changes(self, container, secrets_dir):
        write_secret(secrets_dir, "color", "red")
        container.bootstrap()

        write_secret(secrets_dir, "color", "green")
        container.reload()

        assert container.get_string("color") == "green"

    def test_reload_drops_removed_values(self, container, secrets_dir):
        path = write_secret(secrets_dir, "feature", "on")
        container.bootstrap()

        path.unlink()
        container.reload()

        assert container.get_parameter("feature") is None

    def test_reload_keeps_explicit_values(self, container, environ):
        container.set_parameter("color", "explicit")
        container.bootstrap()

        environ["CONDI_COLOR"] = "env"
        container.reload()

        assert container.get_string("color") == "explicit"

    def test_reload_replaces_default_database(self, container, secrets_dir, environ, engine_factory):
        _configure_postgres(secrets_dir, environ, host="db1")
        container.bootstrap()

        write_secret(secrets_dir, "database_host", "db2")
        container.reload()

        first, second = engine_factory.engines
        assert first.disposed is True
        assert second.disposed is False
        assert container.get_default_database() is second
        assert second.url.host == "db2"

    def test_reload_logs_message(self, container, caplog):
        with caplog.at_level(logging.INFO):
            container.reload()

        assert "Reloading config..." in caplog.text
        assert "Configuration loaded" in caplog.text


class TestTeardown:
    """Closing registered handles"""

    def test_close_closes_everything(self, container, secrets_dir, environ, engine_factory):
        _configure_postgres(secrets_dir, environ)
        container.bootstrap()
        analytics = RecordingHandle("analytics")
        container.set_database("analytics", analytics)

        results = container.close()

        assert results == {"default": None, "analytics": None}
        assert engine_factory.engines[0].disposed is True
        assert analytics.close_calls == 1

    def test_close_continues_past_failures(self, container):
        broken, healthy = RecordingHandle("broken", fail=True), RecordingHandle("healthy")
        container.set_databases({"broken": broken, "healthy": healthy})

        results = container.close_databases()

        assert isinstance(results["broken"], RuntimeError)
        assert healthy.close_calls == 1

    def test_context_manager_closes(self, container):
        handle = RecordingHandle()

        with container as c:
            c.set_default_database(handle)
            assert c.get_database("default") is handle

        assert handle.close_calls == 1


class TestLogger:
    """Logger slot shared by every component"""

    def test_set_logger_propagates(self, container):
        custom = logging.getLogger("tests.container")

        assert container.set_logger(custom) is container
        assert container.get_logger() is custom
        assert container.parameters.logger is custom
        assert container.registry.logger is custom
        assert container.resolver.logger is custom
        assert container.connection_factory.logger is custom

    def test_missing_parameter_warning_uses_container_logger(self, container, caplog):
        container.set_logger(logging.getLogger("tests.container"))

        with caplog.at_level(logging.WARNING, logger="tests.container"):
            assert container.get_float64("missing") == 0.0

        assert any(r.name == "tests.container" for r in caplog.records)


class TestProcessContainer:
    """initialize() / get_container()"""

    def test_get_container_before_initialize(self):
        with pytest.raises(ContainerNotInitializedError):
            get_container()

    def test_initialize_bootstraps_and_registers(self, settings, environ, connection_factory):
        environ["CONDI_COLOR"] = "blue"
        logger = logging.getLogger("tests.initialize")

        container = initialize(
            logger=logger,
            settings=settings,
            environ=environ,
            connection_factory=connection_factory,
        )

        assert get_container() is container
        assert container.get_logger() is logger
        assert container.last_report is not None
        assert container.get_string("color") == "blue"

    def test_strict_setting_reaches_store(self, secrets_dir, environ):
        from condi.config.settings import Settings

        strict = Settings(SECRETS_DIR=str(secrets_dir), STRICT_PARAMETERS=True, _env_file=None)
        container = Container(settings=strict, environ=environ)

        assert container.parameters.strict is True


@pytest.mark.skipif(not hasattr(signal, "SIGHUP"), reason="SIGHUP not available")
class TestReloadSignal:
    """SIGHUP wiring"""

    def test_install_on_main_thread(self, container):
        previous = signal.getsignal(signal.SIGHUP)
        try:
            assert container.install_reload_handler() is True
            assert signal.getsignal(signal.SIGHUP) == container._handle_reload_signal
        finally:
            signal.signal(signal.SIGHUP, previous)

    def test_install_off_main_thread_refused(self, container):
        results = []
        worker = threading.Thread(target=lambda: results.append(container.install_reload_handler()))
        worker.start()
        worker.join()

        assert results == [False]

    def test_signal_triggers_reload(self, container):
        reloaded = threading.Event()
        container.reload = reloaded.set

        container._handle_reload_signal(signal.SIGHUP, None)

        assert reloaded.wait(timeout=5)
