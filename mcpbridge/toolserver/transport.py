"""Tool server communication via stdio subprocess transport."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import threading
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"


class MCPTransportError(Exception):
    """Raised when communication with the tool server fails."""


class ServerConnectionError(MCPTransportError):
    """Raised when the tool server cannot be launched or the handshake fails."""


class MCPTransport:
    """
    Communicate with a tool server over stdin/stdout (JSON-RPC, one message per line).

    The server's stderr is inherited so its diagnostics reach the terminal.
    """

    def __init__(
        self,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        client_name: str = "mcpbridge",
        client_version: str = "0.1.0",
    ):
        self.command = command
        self.args = args or []
        self.env = env or {}
        self.client_name = client_name
        self.client_version = client_version
        self.server_info: Dict[str, Any] = {}
        self._process: Optional[subprocess.Popen] = None
        self._request_id = 0
        self._lock = threading.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn the tool server subprocess."""
        if self.is_running:
            return

        merged_env = {**os.environ, **self.env}
        logger.info("Launching tool server: %s %s", self.command, " ".join(self.args))
        try:
            self._process = subprocess.Popen(
                [self.command] + self.args,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                env=merged_env,
            )
        except FileNotFoundError:
            raise ServerConnectionError(f"Tool server command not found: {self.command}")
        except OSError as exc:
            raise ServerConnectionError(f"Failed to launch tool server '{self.command}': {exc}")

    def stop(self) -> None:
        """Terminate the tool server subprocess."""
        if self._process and self._process.poll() is None:
            try:
                if self._process.stdin:
                    self._process.stdin.close()
                self._process.terminate()
                self._process.wait(timeout=5)
            except (OSError, subprocess.TimeoutExpired):
                self._process.kill()
        self._process = None

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    # ── JSON-RPC ──────────────────────────────────────────────────────────

    def _write(self, message: Dict[str, Any]) -> None:
        line = json.dumps(message) + "\n"
        self._process.stdin.write(line.encode())
        self._process.stdin.flush()

    def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send a JSON-RPC request and return its result."""
        if not self.is_running:
            raise MCPTransportError("Tool server is not running")

        with self._lock:
            self._request_id += 1
            request_id = self._request_id
            request: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
            if params:
                request["params"] = params

            try:
                self._write(request)
                response = self._read_response(request_id)
            except (BrokenPipeError, OSError) as exc:
                raise MCPTransportError(f"Tool server transport error: {exc}")

        if "error" in response:
            err = response["error"] or {}
            raise MCPTransportError(f"Tool server error {err.get('code')}: {err.get('message')}")

        return response.get("result") or {}

    def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        """Send a JSON-RPC notification (no response expected)."""
        message: Dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params:
            message["params"] = params
        with self._lock:
            try:
                self._write(message)
            except (BrokenPipeError, OSError) as exc:
                raise MCPTransportError(f"Tool server transport error: {exc}")

    def _read_response(self, request_id: int) -> Dict[str, Any]:
        """Read lines until the response for ``request_id`` arrives."""
        while True:
            raw = self._process.stdout.readline()
            if not raw:
                raise MCPTransportError("Tool server closed connection (empty response)")
            raw = raw.strip()
            if not raw:
                continue
            try:
                message = json.loads(raw.decode())
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.debug("Ignoring non-JSON line from tool server: %r", raw[:200])
                continue
            if not isinstance(message, dict):
                continue
            if message.get("id") == request_id and ("result" in message or "error" in message):
                return message
            # Server-initiated notifications and requests are not handled.
            logger.debug("Skipping tool server message: %s", message.get("method", message.get("id")))

    # ── Tool server protocol ──────────────────────────────────────────────

    def initialize(self) -> Dict[str, Any]:
        """Perform the initialize handshake."""
        try:
            result = self.send("initialize", {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": self.client_name, "version": self.client_version},
            })
            self.notify("notifications/initialized")
        except MCPTransportError as exc:
            raise ServerConnectionError(f"Tool server handshake failed: {exc}") from exc
        self.server_info = result.get("serverInfo", {})
        return result

    def connect(self) -> Dict[str, Any]:
        """Start the subprocess and complete the handshake."""
        self.start()
        try:
            return self.initialize()
        except ServerConnectionError:
            self.stop()
            raise

    def list_tools(self) -> List[Dict[str, Any]]:
        """Fetch the tool list from the server, following pagination cursors."""
        tools: List[Dict[str, Any]] = []
        params: Optional[Dict[str, Any]] = None
        while True:
            result = self.send("tools/list", params)
            page = result.get("tools", [])
            if not isinstance(page, list):
                raise MCPTransportError("Malformed tools/list result: 'tools' is not a list")
            tools.extend(page)
            cursor = result.get("nextCursor")
            if not cursor:
                return tools
            params = {"cursor": cursor}

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Call a tool on the server."""
        return self.send("tools/call", {"name": name, "arguments": arguments or {}})

    # ── Cleanup ───────────────────────────────────────────────────────────

    def __del__(self):
        self.stop()
