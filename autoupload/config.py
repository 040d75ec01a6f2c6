"""Workspace configuration loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from autoupload import types

CONFIG_DIR_NAME = ".vscode"
CONFIG_FILE_NAME = "sftp.json"
CONFIG_RELATIVE_PATH = Path(CONFIG_DIR_NAME) / CONFIG_FILE_NAME
DEFAULT_IGNORE_PATTERNS = [".git", ".vscode", "node_modules", "__pycache__"]


class ConfigError(RuntimeError):
    """Raised when the workspace descriptor is missing or invalid."""

    pass


def config_path_for(workspace_root: Path | str) -> Path:
    return Path(workspace_root) / CONFIG_RELATIVE_PATH


def find_workspace_root(path: Path | str) -> Path:
    """Return the nearest directory at or above ``path`` holding a descriptor.

    ``path`` does not have to exist; a deleted file still resolves to the
    workspace it used to live in.
    """
    candidate = Path(path).expanduser().absolute()
    start = candidate if candidate.is_dir() else candidate.parent
    for directory in (start, *start.parents):
        if config_path_for(directory).is_file():
            return directory
    raise ConfigError(f"{CONFIG_FILE_NAME} not found in {CONFIG_DIR_NAME} folder for {candidate}.")


def load_server_config(workspace_root: Path | str) -> types.ServerConfig:
    """Read and validate the descriptor of a workspace."""
    config_path = config_path_for(workspace_root)
    if not config_path.exists():
        raise ConfigError(f"{CONFIG_FILE_NAME} not found in {CONFIG_DIR_NAME} folder ({config_path}).")
    return load_server_config_from_path(config_path)


def load_server_config_from_path(config_path: Path) -> types.ServerConfig:
    """Load a descriptor from an explicit path."""
    try:
        raw_data = config_path.read_text(encoding="utf-8")
    except OSError as exc:  # pragma: no cover - filesystem errors
        raise ConfigError(f"Unable to read {config_path}: {exc}") from exc

    try:
        mapping = json.loads(raw_data)
    except ValueError as exc:
        raise ConfigError(f"Error reading {config_path.name}: {exc}") from exc
    if not isinstance(mapping, Mapping):
        raise ConfigError(f"{config_path} must contain a JSON object.")

    return _build_server_config(mapping, config_path)


def _build_server_config(data: Mapping[str, Any], config_path: Path) -> types.ServerConfig:
    protocol = _load_protocol(data, config_path)
    host = _require_str(data, "host", config_path)
    username = _require_str(data, "username", config_path)
    remote_path = _require_str(data, "remotePath", config_path)
    port = _load_port(data.get("port"), config_path)
    password = _optional_str(data, "password", config_path)
    private_key = _optional_str(data, "privateKey", config_path)
    passphrase = _optional_str(data, "passphrase", config_path)
    if protocol == types.Protocol.FTP and password is None:
        raise ConfigError(f"FTP servers require 'password' in {config_path}.")
    if protocol == types.Protocol.SFTP and password is None and private_key is None:
        raise ConfigError(f"SFTP servers require 'password' or 'privateKey' in {config_path}.")
    if protocol == types.Protocol.FTP and private_key is not None:
        raise ConfigError(f"'privateKey' is only supported for SFTP in {config_path}.")
    upload_on_save = data.get("uploadOnSave", False)
    if not isinstance(upload_on_save, bool):
        raise ConfigError(f"'uploadOnSave' must be true or false in {config_path}.")
    ignore = _load_ignore(data.get("ignore"), config_path)
    return types.ServerConfig(
        protocol=protocol,
        host=host,
        port=port,
        username=username,
        password=password,
        private_key=private_key,
        passphrase=passphrase,
        remote_path=remote_path,
        upload_on_save=upload_on_save,
        ignore=tuple(ignore),
    )


def _load_protocol(data: Mapping[str, Any], config_path: Path) -> types.Protocol:
    value = _require_str(data, "protocol", config_path)
    try:
        return types.Protocol(value.lower())
    except ValueError as exc:
        raise ConfigError(f"Protocol '{value}' is not supported in {config_path}.") from exc


def _load_port(value: Any, config_path: Path) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value < 65536:
        raise ConfigError(f"'port' must be an integer between 1 and 65535 in {config_path}.")
    return value


def _load_ignore(value: Any, config_path: Path) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"'ignore' must be an array of strings in {config_path}.")
    patterns = []
    for pattern in value:
        if not isinstance(pattern, str):
            raise ConfigError(f"'ignore' must only contain strings in {config_path}.")
        patterns.append(pattern)
    return patterns


def _require_str(block: Mapping[str, Any], key: str, config_path: Path) -> str:
    value = block.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{config_path.name} must define string '{key}' ({config_path}).")
    return value


def _optional_str(block: Mapping[str, Any], key: str, config_path: Path) -> Optional[str]:
    value = block.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string in {config_path}.")
    return value


def build_config_template(protocol: types.Protocol | str = types.Protocol.SFTP) -> types.ServerConfig:
    """Return an in-memory descriptor with sensible defaults."""
    resolved = types.Protocol(protocol)
    return types.ServerConfig(
        protocol=resolved,
        host="example.com",
        username="deploy",
        password="change-me",
        remote_path="/srv/app",
        upload_on_save=True,
        ignore=tuple(DEFAULT_IGNORE_PATTERNS),
    )


def config_to_mapping(server_config: types.ServerConfig) -> Dict[str, Any]:
    """Convert a ServerConfig into the on-disk key layout."""
    data: Dict[str, Any] = {
        "protocol": server_config.protocol.value,
        "host": server_config.host,
    }
    if server_config.port is not None:
        data["port"] = server_config.port
    data["username"] = server_config.username
    if server_config.password is not None:
        data["password"] = server_config.password
    if server_config.private_key is not None:
        data["privateKey"] = server_config.private_key
    if server_config.passphrase is not None:
        data["passphrase"] = server_config.passphrase
    data["remotePath"] = server_config.remote_path
    data["uploadOnSave"] = server_config.upload_on_save
    data["ignore"] = list(server_config.ignore)
    return data


def config_to_json(server_config: types.ServerConfig) -> str:
    return json.dumps(config_to_mapping(server_config), indent=4) + "\n"


def write_server_config(workspace_root: Path | str, server_config: types.ServerConfig) -> Path:
    target = config_path_for(workspace_root)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(config_to_json(server_config), encoding="utf-8")
    return target


__all__ = [
    "CONFIG_DIR_NAME",
    "CONFIG_FILE_NAME",
    "CONFIG_RELATIVE_PATH",
    "ConfigError",
    "DEFAULT_IGNORE_PATTERNS",
    "build_config_template",
    "config_path_for",
    "config_to_json",
    "config_to_mapping",
    "find_workspace_root",
    "load_server_config",
    "load_server_config_from_path",
    "write_server_config",
]
