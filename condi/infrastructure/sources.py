# 📄 File: condi/infrastructure/sources.py
#
# 🧭 Purpose (Layman Explanation):
# Looks for settings outside the program: first in the secrets folder an orchestrator mounts
# (one file per setting), then in the environment variables the process was started with.
# If something can't be read it just moves on, writing a warning in the log.
#
# 🧪 Purpose (Technical Summary):
# Source resolver merging a secret-file directory and the process environment (optionally
# layered over a dotenv file) in fixed precedence: secrets before environment. Provides single
# key lookups for read-through on cache miss and bulk scans for bootstrap. All I/O failures are
# absorbed here and reported through the logger only.
#
# 🔗 Dependencies:
# - pathlib / os (secret files, process environment)
# - python-dotenv (optional env file, merged beneath the real environment)
# - condi.core.values (ParameterValue tagging)
#
# 🔄 Connected Modules / Calls From:
# - condi.core.parameters (ParameterStore.lookup on cache miss)
# - condi.container (bootstrap and reload scans)

import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from dotenv import dotenv_values

from condi.core.values import ParameterValue, ValueSource

logger = logging.getLogger(__name__)

DEFAULT_SECRETS_DIR = "/run/secrets"
DEFAULT_ENV_PREFIX = "CONDI_"


class SourceResolver:
    """
    Reads parameters from the secrets directory and the environment.

    Secrets are keyed by lower-cased file name; environment lookups use the
    upper-cased parameter name, prefixed with ``env_prefix`` first.
    """

    def __init__(
        self,
        secrets_dir: Union[str, Path] = DEFAULT_SECRETS_DIR,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[Union[str, Path]] = None,
        allow_unprefixed: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        self.secrets_dir = Path(secrets_dir)
        self.env_prefix = env_prefix or ""
        self.env_file = Path(env_file) if env_file else None
        self.allow_unprefixed = allow_unprefixed
        self._environ = environ
        self._logger = logger

    @classmethod
    def from_settings(
        cls,
        settings,
        environ: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None
    ) -> "SourceResolver":
        return cls(
            secrets_dir=settings.SECRETS_DIR,
            env_prefix=settings.ENV_PREFIX,
            environ=environ,
            env_file=settings.ENV_FILE,
            allow_unprefixed=settings.ENV_ALLOW_UNPREFIXED,
            logger=logger,
        )

    @property
    def logger(self) -> logging.Logger:
        return self._logger or logger

    def set_logger(self, new_logger: Optional[logging.Logger]) -> "SourceResolver":
        self._logger = new_logger
        return self

    # =========================================================================
    # ENVIRONMENT
    # =========================================================================

    def environment(self) -> Dict[str, str]:
        """Current environment pairs, layered over the env file when one is configured."""
        merged: Dict[str, str] = {}
        if self.env_file is not None:
            if self.env_file.is_file():
                merged.update({k: v for k, v in dotenv_values(self.env_file).items() if v is not None})
            else:
                self.logger.warning(f"Env file {self.env_file} not found, skipping")
        merged.update(os.environ if self._environ is None else self._environ)
        return merged

    def resolve_from_environment(self, name: str) -> str:
        """Value of ``PREFIX + NAME`` (then bare ``NAME`` if allowed), or an empty string."""
        value = self._find_environment(name)
        return value if value is not None else ""

    def _find_environment(self, name: str) -> Optional[str]:
        environ = self.environment()
        key = name.upper()
        candidates = [f"{self.env_prefix}{key}"] if self.env_prefix else []
        if self.allow_unprefixed or not self.env_prefix:
            candidates.append(key)
        for candidate in candidates:
            if candidate in environ:
                return environ[candidate]
        return None

    def scan_environment(self, prefix: Optional[str] = None) -> Dict[str, str]:
        """
        Collect every variable starting with ``prefix``.

        The prefix is stripped and the rest lower-cased to form the key;
        variables whose remaining name is empty are dropped.
        """
        prefix = self.env_prefix if prefix is None else prefix
        found: Dict[str, str] = {}
        for name, value in self.environment().items():
            if not name.startswith(prefix):
                continue
            key = name[len(prefix):].lower()
            if key:
                found[key] = value
        self.logger.debug(f"Loaded {len(found)} parameters from environment (prefix '{prefix}')")
        return found

    # =========================================================================
    # SECRETS DIRECTORY
    # =========================================================================

    def resolve_from_secrets(self, name: str) -> str:
        """Content of the secret file named ``name`` (case-insensitive), or an empty string."""
        value = self._find_secret(name)
        return value if value is not None else ""

    def _find_secret(self, name: str) -> Optional[str]:
        key = name.lower()
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            return None
        path = self.secrets_dir / key
        if not path.is_file():
            path = self._match_secret_file(key)
            if path is None:
                return None
        return self._read_secret(path)

    def _match_secret_file(self, key: str) -> Optional[Path]:
        """Regular file whose lower-cased name is ``key``; the last in sorted order wins, as in a scan."""
        try:
            entries = sorted(self.secrets_dir.iterdir())
        except OSError:
            return None
        matches = [entry for entry in entries if entry.name.lower() == key and entry.is_file()]
        return matches[-1] if matches else None

    def scan_secrets_directory(self) -> Dict[str, str]:
        """Register every regular file in the secrets directory; subdirectories are skipped."""
        found: Dict[str, str] = {}
        try:
            entries = sorted(self.secrets_dir.iterdir())
        except FileNotFoundError:
            self.logger.warning(f"Secrets folder {self.secrets_dir} not exists, skipping")
            return found
        except OSError as e:
            self.logger.warning(f"Secrets folder {self.secrets_dir} can't be read: {e}")
            return found

        for entry in entries:
            if entry.is_dir():
                self.logger.warning(
                    "Secrets folder has a subfolder!",
                    extra={"extra_fields": {"path": str(entry)}}
                )
                continue
            if not entry.is_file():
                self.logger.warning(
                    f"Secrets folder entry {entry.name} is not a regular file, skipping",
                    extra={"extra_fields": {"path": str(entry)}}
                )
                continue
            secret = self._read_secret(entry)
            if secret is None:
                continue
            found[entry.name.lower()] = secret

        self.logger.debug(f"Loaded {len(found)} parameters from secrets folder {self.secrets_dir}")
        return found

    def _read_secret(self, path: Path) -> Optional[str]:
        try:
            return path.read_bytes().decode("utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            self.logger.warning(
                f"Error reading secret file {path.name}: {e}",
                extra={"extra_fields": {"path": str(path)}}
            )
            return None

    # =========================================================================
    # MERGED VIEW
    # =========================================================================

    def resolve(self, name: str) -> str:
        """Secrets first, then environment; empty string when neither has it."""
        value = self.resolve_value(name)
        return value.data if value is not None else ""

    def resolve_value(self, name: str) -> Optional[ParameterValue]:
        """Tagged value for ``name``; a present but empty secret still wins over the environment."""
        secret = self._find_secret(name)
        if secret is not None:
            return ParameterValue.text(secret, source=ValueSource.SECRET)
        env_value = self._find_environment(name)
        if env_value is not None:
            return ParameterValue.text(env_value, source=ValueSource.ENVIRONMENT)
        return None

    def load(self) -> Dict[str, ParameterValue]:
        """
        Full scan used by bootstrap: secrets win over environment for the same key.
        """
        loaded: Dict[str, ParameterValue] = {
            name: ParameterValue.text(value, source=ValueSource.SECRET)
            for name, value in self.scan_secrets_directory().items()
        }
        for name, value in self.scan_environment().items():
            loaded.setdefault(name, ParameterValue.text(value, source=ValueSource.ENVIRONMENT))
        return loaded
