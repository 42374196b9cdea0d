"""Resolve a CLI server identifier into a launch spec."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import yaml
from pydantic import ValidationError

from mcpbridge.toolserver.schema import ServerLaunchSpec, ServersFile
from mcpbridge.validation.config import ConfigError

logger = logging.getLogger(__name__)


def load_servers_file(path: Path) -> ServersFile:
    """Load a servers file (JSON, or YAML when the suffix says so)."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read servers file {path}: {e}")

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse servers file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Servers file {path} must contain an object")

    try:
        return ServersFile(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid servers file {path}: {e}")


def select_server(servers: ServersFile, identifier: str) -> Tuple[str, ServerLaunchSpec]:
    """
    Pick the launch spec named ``identifier``.

    ``"default"`` falls back to ``defaultServer`` when no server is literally
    called ``default``.
    """
    if identifier in servers.mcp_servers:
        return identifier, servers.mcp_servers[identifier]

    if (
        identifier == "default"
        and servers.default_server
        and servers.default_server in servers.mcp_servers
    ):
        name = servers.default_server
        return name, servers.mcp_servers[name]

    raise ConfigError(f"Server '{identifier}' not found in configuration file")


def spec_for_script(script_path: str) -> ServerLaunchSpec:
    """Build a launch spec that runs a server script with a suitable runtime."""
    suffix = Path(script_path).suffix.lower()
    if suffix == ".py":
        command = "python" if sys.platform == "win32" else "python3"
    elif suffix in (".js", ".mjs", ".cjs"):
        command = "node"
    else:
        logger.warning(
            "Server script %s has no .py or .js extension; running it with %s",
            script_path,
            sys.executable,
        )
        command = sys.executable
    return ServerLaunchSpec(command=command, args=[script_path])


def resolve_server(
    identifier: str, servers_file: Optional[Path] = None
) -> Tuple[str, ServerLaunchSpec, Optional[str]]:
    """
    Resolve ``identifier`` to ``(server_name, launch_spec, system_prompt)``.

    With a servers file the identifier is a key into it; otherwise it is a
    path to a server script.
    """
    if servers_file is not None:
        servers = load_servers_file(servers_file)
        name, spec = select_server(servers, identifier)
        logger.info("Using server '%s' from %s", name, servers_file)
        return name, spec, servers.system

    return Path(identifier).stem or identifier, spec_for_script(identifier), None
