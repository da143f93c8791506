# 📄 File: condi/utils/logging.py

# 🧭 Purpose (Layman Explanation):
# Sets up how the registry writes its log: as JSON lines for log collectors or as readable
# text, and tags every line written during one configuration load with the same id.

# 🧪 Purpose (Technical Summary):
# Structured logging setup with JSON formatting (python-json-logger), a contextual text
# formatter, idempotent root configuration and a reload correlation id carried in a ContextVar.

# 🔗 Dependencies:
# - python-json-logger: JSON log formatting
# - logging: Python standard logging
# - contextvars: bootstrap/reload correlation
# - datetime: Timestamp handling

# 🔄 Connected Modules / Calls From:
# Used by: condi.container (initialize, bootstrap and reload), application start-up code

import logging
import socket
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from pythonjsonlogger.json import JsonFormatter

from condi.config.settings import Settings

ROOT_LOGGER_NAME = "condi"

# Context variable for bootstrap/reload tracking
reload_id_var: ContextVar[str] = ContextVar('reload_id', default='')

# Global logging configuration
_logging_configured = False


def _hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return 'unknown'


class ContextualFormatter(logging.Formatter):
    """
    Formatter that adds the reload id, hostname and service name to records.
    """

    def __init__(self, *args, service_name: str = ROOT_LOGGER_NAME, **kwargs):
        super().__init__(*args, **kwargs)
        self.hostname = _hostname()
        self.service_name = service_name

    def format(self, record):
        record.reload_id = reload_id_var.get()
        record.hostname = self.hostname
        record.service = self.service_name
        record.timestamp = datetime.now(timezone.utc).isoformat()

        # Flatten structured fields onto the record for %-style formats
        extra_fields = getattr(record, 'extra_fields', None)
        if extra_fields:
            record.extra_text = ' '.join(f'{k}={v}' for k, v in extra_fields.items())
        else:
            record.extra_text = ''

        return super().format(record)


class JSONFormatter(JsonFormatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per record with a consistent structure; fields
    passed through ``extra={'extra_fields': {...}}`` land under ``extra``.
    """

    def __init__(self, service_name: str = ROOT_LOGGER_NAME, **kwargs):
        super().__init__(**kwargs)
        self.hostname = _hostname()
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = self.service_name
        log_record['hostname'] = self.hostname

        reload_id = reload_id_var.get()
        if reload_id:
            log_record['reload_id'] = reload_id

        extra_fields = log_record.pop('extra_fields', None)
        if extra_fields:
            log_record['extra'] = extra_fields


def setup_logging(
    settings: Optional[Settings] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_console: bool = True,
    force: bool = False
) -> logging.Logger:
    """
    Configure the ``condi`` logger hierarchy.

    Explicit arguments win over settings. Subsequent calls are no-ops unless
    ``force`` is set.
    """
    global _logging_configured

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _logging_configured and not force:
        return logger

    service_name = ROOT_LOGGER_NAME
    if settings is not None:
        log_level = log_level or settings.LOG_LEVEL
        log_format = log_format or settings.LOG_FORMAT
        log_file = log_file or settings.LOG_FILE
        service_name = settings.SERVICE_NAME
    log_level = log_level or 'INFO'
    log_format = log_format or 'json'

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format.lower() == 'json':
        formatter: logging.Formatter = JSONFormatter(service_name=service_name)
    else:
        formatter = ContextualFormatter(
            '%(timestamp)s - %(name)s - %(levelname)s - %(message)s %(extra_text)s',
            service_name=service_name,
        )

    logger.setLevel(numeric_level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _logging_configured = True
    return logger


def reset_logging() -> None:
    """Forget the configured state so setup_logging() applies again."""
    global _logging_configured
    _logging_configured = False


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger inside the ``condi`` hierarchy.

    Args:
        name: Logger name (usually __name__); bare names are nested under ``condi``
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f'{ROOT_LOGGER_NAME}.'):
        return logging.getLogger(name)
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


@contextmanager
def log_context(reload_id: Optional[str] = None):
    """
    Stamp every record logged inside the block with a reload id.

    Args:
        reload_id: Correlation id; generated when omitted
    """
    if reload_id is None:
        reload_id = uuid4().hex[:12]

    token = reload_id_var.set(reload_id)
    try:
        yield reload_id
    finally:
        reload_id_var.reset(token)
