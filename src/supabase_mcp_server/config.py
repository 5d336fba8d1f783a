"""Server configuration loader.

Loads settings from a YAML file, expands ``${VAR}`` references, and applies
environment variable overrides for deployment.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

DEFAULT_PORT = 3001
DEFAULT_HOST = "0.0.0.0"

_ENV_REF = re.compile(r"\$\{([^}]+)\}")


class ConfigLoadError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def expand_env_vars(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Expand environment variables in a string.

    Supports ${VAR_NAME} syntax. Unknown variables are left unchanged.

    Args:
        value: String potentially containing environment variable references.
        environ: Environment to read from (defaults to os.environ).

    Returns:
        String with known environment variables expanded.
    """
    env = os.environ if environ is None else environ

    def replacer(match: re.Match[str]) -> str:
        return env.get(match.group(1), match.group(0))

    return _ENV_REF.sub(replacer, value)


def _expand(value: Any, environ: Mapping[str, str] | None) -> Any:
    if isinstance(value, str):
        return expand_env_vars(value, environ)
    return value


@dataclass(frozen=True)
class ServerConfig:
    """Runtime configuration for the server and its transports."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_timeout: float = 30.0

    # None disables the per-invocation timeout
    tool_timeout: float | None = None
    strict_registration: bool = False

    sse_keepalive_seconds: float = 15.0

    audit_log_file: str = ""
    log_level: str = "INFO"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    @property
    def audit_log_path(self) -> Path:
        return Path(self.audit_log_file)

    @classmethod
    def from_dict(
        cls, config: dict[str, Any], environ: Mapping[str, str] | None = None
    ) -> ServerConfig:
        """Create a ServerConfig from a configuration dictionary.

        Args:
            config: Dictionary parsed from YAML configuration.
            environ: Environment used for ${VAR} expansion.

        Returns:
            ServerConfig with all settings populated.

        Raises:
            ConfigLoadError: If a value has the wrong type.
        """
        server = config.get("server") or {}
        supabase = config.get("supabase") or {}
        tools = config.get("tools") or {}
        sse = config.get("sse") or {}
        audit = config.get("audit") or {}
        logging_section = config.get("logging") or {}

        timeout = _expand(tools.get("timeout"), environ)

        try:
            return cls(
                host=_expand(server.get("host", DEFAULT_HOST), environ),
                port=int(_expand(server.get("port", DEFAULT_PORT), environ)),
                supabase_url=_expand(supabase.get("url") or "", environ).rstrip("/"),
                supabase_service_role_key=_expand(supabase.get("service_role_key") or "", environ),
                supabase_timeout=float(supabase.get("timeout", 30.0)),
                tool_timeout=float(timeout) if timeout not in (None, "") else None,
                strict_registration=bool(tools.get("strict_registration", False)),
                sse_keepalive_seconds=float(sse.get("keepalive_seconds", 15.0)),
                audit_log_file=_expand(audit.get("log_file") or "", environ),
                log_level=str(logging_section.get("level", "INFO")).upper(),
            )
        except (TypeError, ValueError) as e:
            raise ConfigLoadError(f"Invalid configuration value: {e}") from e

    def with_env_overrides(self, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Return a copy with deployment environment variables applied.

        Recognized: HOST, PORT, SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY,
        MCP_LOG_LEVEL.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}

        if env.get("HOST"):
            overrides["host"] = env["HOST"]
        if env.get("PORT"):
            try:
                overrides["port"] = int(env["PORT"])
            except ValueError as e:
                raise ConfigLoadError(f"PORT must be an integer: {env['PORT']}") from e
        if env.get("SUPABASE_URL"):
            overrides["supabase_url"] = env["SUPABASE_URL"].rstrip("/")
        if env.get("SUPABASE_SERVICE_ROLE_KEY"):
            overrides["supabase_service_role_key"] = env["SUPABASE_SERVICE_ROLE_KEY"]
        if env.get("MCP_LOG_LEVEL"):
            overrides["log_level"] = env["MCP_LOG_LEVEL"].upper()

        return replace(self, **overrides)


def load_config(path: Path | None, environ: Mapping[str, str] | None = None) -> ServerConfig:
    """Load configuration from a YAML file and the environment.

    Args:
        path: Path to the YAML file, or None to use defaults only.
        environ: Environment to read from (defaults to os.environ).

    Returns:
        ServerConfig instance.

    Raises:
        ConfigLoadError: If the file cannot be found, parsed, or validated.
    """
    if path is None:
        return ServerConfig().with_env_overrides(environ)

    if not path.exists():
        raise ConfigLoadError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse config YAML: {e}") from e

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigLoadError("Config must be a YAML mapping")

    return ServerConfig.from_dict(config, environ).with_env_overrides(environ)
