"""A small Docker Engine API client speaking HTTP over a Unix socket or TCP."""

from __future__ import annotations

import http.client
import json
import os
import socket
from collections.abc import Iterator, Mapping, Sequence
from typing import Any
from urllib.parse import quote, urlencode, urlsplit

DEFAULT_HOST = "unix:///var/run/docker.sock"
DEFAULT_TCP_PORT = 2375
_CHUNK = 65536


class DockerError(Exception):
    """Raised when the Docker daemon cannot be reached or reports an error."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class _UnixHTTPConnection(http.client.HTTPConnection):
    def __init__(self, path: str) -> None:
        super().__init__("localhost")
        self._socket_path = path

    def connect(self) -> None:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(self._socket_path)
        except OSError:
            sock.close()
            raise
        self.sock = sock


class _ResponseStream:
    """A streamed response body that owns its connection."""

    def __init__(self, connection: http.client.HTTPConnection, response: http.client.HTTPResponse) -> None:
        self._connection = connection
        self._response = response

    def read(self, size: int = -1) -> bytes:
        return self._response.read() if size < 0 else self._response.read(size)

    def __iter__(self) -> Iterator[bytes]:
        while chunk := self._response.read1(_CHUNK):
            yield chunk

    def close(self) -> None:
        self._response.close()
        self._connection.close()

    def __enter__(self) -> _ResponseStream:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class _ExecSession:
    """A hijacked connection to a running exec instance."""

    def __init__(self, sock: socket.socket, reader) -> None:
        self._sock = sock
        self._reader = reader

    def read(self, size: int = _CHUNK) -> bytes:
        """Return the bytes available now, up to ``size``; empty at end of stream."""
        return self._reader.read1(size)

    def __iter__(self) -> Iterator[bytes]:
        while chunk := self.read():
            yield chunk

    def write(self, data: bytes) -> None:
        self._sock.sendall(data)

    def close_write(self) -> None:
        self._sock.shutdown(socket.SHUT_WR)

    def close(self) -> None:
        self._reader.close()
        self._sock.close()

    def __enter__(self) -> _ExecSession:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def _error_message(data: bytes, status: int) -> str:
    try:
        message = json.loads(data)["message"]
    except (ValueError, KeyError, TypeError):
        message = data.decode("utf-8", "replace").strip() or f"HTTP status {status}"
    return f"Error response from daemon: {message}"


def _split_reference(image: str) -> tuple[str, str]:
    if "@" in image:
        name, digest = image.split("@", 1)
        return name, digest
    colon = image.rfind(":")
    if colon > image.rfind("/"):
        return image[:colon], image[colon + 1:]
    return image, "latest"


class DockerClient:
    """Client for the Docker Engine API."""

    def __init__(self, host: str) -> None:
        self.host = host
        self.api_version: str | None = None
        self._closed = False
        self._socket_path: str | None = None
        self._address: tuple[str, int] | None = None
        parts = urlsplit(host)
        if parts.scheme == "unix" and parts.path:
            self._socket_path = parts.path
        elif parts.scheme in ("tcp", "http") and parts.hostname:
            try:
                port = parts.port or DEFAULT_TCP_PORT
            except ValueError as exc:
                raise DockerError(f"unable to parse docker host {host!r}") from exc
            self._address = (parts.hostname, port)
        else:
            raise DockerError(f"unable to parse docker host {host!r}")

    @classmethod
    def from_env(cls) -> DockerClient:
        """Build a client from DOCKER_HOST and DOCKER_API_VERSION."""
        client = cls(os.environ.get("DOCKER_HOST") or DEFAULT_HOST)
        client.api_version = os.environ.get("DOCKER_API_VERSION") or None
        return client

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> DockerClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # -- transport ---------------------------------------------------------

    def _path(self, path: str, params: Mapping[str, str] | None = None) -> str:
        prefix = f"/v{self.api_version}" if self.api_version else ""
        query = f"?{urlencode(params)}" if params else ""
        return f"{prefix}{path}{query}"

    def _connection(self) -> http.client.HTTPConnection:
        if self._closed:
            raise DockerError("client is closed")
        if self._socket_path is not None:
            return _UnixHTTPConnection(self._socket_path)
        host, port = self._address
        return http.client.HTTPConnection(host, port)

    def _open(self, method: str, path: str, params=None, body=None):
        connection = self._connection()
        headers = {}
        payload = None
        if body is not None:
            payload = json.dumps(body).encode()
            headers["Content-Type"] = "application/json"
        try:
            connection.request(method, self._path(path, params), body=payload, headers=headers)
            response = connection.getresponse()
        except OSError as exc:
            connection.close()
            raise DockerError(f"Cannot connect to the Docker daemon at {self.host}: {exc}") from exc
        if response.status >= 400:
            data = response.read()
            connection.close()
            raise DockerError(_error_message(data, response.status), response.status)
        return connection, response

    def _call(self, method: str, path: str, params=None, body=None) -> Any:
        connection, response = self._open(method, path, params, body)
        try:
            data = response.read()
        finally:
            connection.close()
        if not data.strip():
            return None
        decoded, _ = json.JSONDecoder().raw_decode(data.decode().lstrip())
        return decoded

    def _stream(self, method: str, path: str, params=None, body=None) -> _ResponseStream:
        return _ResponseStream(*self._open(method, path, params, body))

    def _raw_socket(self) -> socket.socket:
        if self._closed:
            raise DockerError("client is closed")
        try:
            if self._socket_path is not None:
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                try:
                    sock.connect(self._socket_path)
                except OSError:
                    sock.close()
                    raise
                return sock
            return socket.create_connection(self._address)
        except OSError as exc:
            raise DockerError(f"Cannot connect to the Docker daemon at {self.host}: {exc}") from exc

    @staticmethod
    def _container(container: str) -> str:
        return f"/containers/{quote(container, safe='')}"

    # -- images ------------------------------------------------------------

    def image_list(self) -> list[dict]:
        return self._call("GET", "/images/json") or []

    def image_pull(self, image: str) -> _ResponseStream:
        """Start pulling an image; the returned stream carries the progress output."""
        name, tag = _split_reference(image)
        return self._stream("POST", "/images/create", {"fromImage": name, "tag": tag})

    # -- containers --------------------------------------------------------

    def container_list(self, all: bool = False) -> list[dict]:
        params = {"all": "1"} if all else None
        return self._call("GET", "/containers/json", params) or []

    def container_create(self, image: str, name: str = "") -> str:
        """Create a container and return its ID."""
        params = {"name": name} if name else None
        result = self._call("POST", "/containers/create", params, {"Image": image})
        return result["Id"]

    def container_start(self, container: str) -> None:
        self._call("POST", f"{self._container(container)}/start")

    def container_stop(self, container: str) -> None:
        self._call("POST", f"{self._container(container)}/stop")

    def container_remove(self, container: str, force: bool = False) -> None:
        params = {"force": "1"} if force else None
        self._call("DELETE", self._container(container), params)

    def container_inspect(self, container: str) -> dict:
        return self._call("GET", f"{self._container(container)}/json")

    def container_logs(self, container: str, follow: bool = False, tail: str = "") -> _ResponseStream:
        params = {"stdout": "1", "stderr": "1"}
        if follow:
            params["follow"] = "1"
        if tail:
            params["tail"] = tail
        return self._stream("GET", f"{self._container(container)}/logs", params)

    def container_stats(self, container: str) -> dict:
        """Return a single stats snapshot for a container."""
        return self._call("GET", f"{self._container(container)}/stats", {"stream": "0"})

    # -- exec --------------------------------------------------------------

    def exec_create(self, container: str, command: Sequence[str]) -> str:
        """Create an interactive exec instance and return its ID."""
        config = {
            "Cmd": list(command),
            "AttachStdout": True,
            "AttachStderr": True,
            "AttachStdin": True,
            "Tty": True,
        }
        return self._call("POST", f"{self._container(container)}/exec", body=config)["Id"]

    def exec_attach(self, exec_id: str) -> _ExecSession:
        """Start an exec instance and return the hijacked bidirectional stream."""
        body = json.dumps({"Detach": False, "Tty": False}).encode()
        path = self._path(f"/exec/{quote(exec_id, safe='')}/start")
        request = (
            f"POST {path} HTTP/1.1\r\n"
            "Host: docker\r\n"
            "Content-Type: application/json\r\n"
            "Connection: Upgrade\r\n"
            "Upgrade: tcp\r\n"
            f"Content-Length: {len(body)}\r\n\r\n"
        ).encode() + body
        sock = self._raw_socket()
        reader = sock.makefile("rb")
        try:
            sock.sendall(request)
            status_line = reader.readline()
            parts = status_line.split(None, 2)
            if len(parts) < 2 or not parts[1].isdigit():
                raise DockerError(f"malformed response from daemon: {status_line!r}")
            status = int(parts[1])
            headers = {}
            while (line := reader.readline()) not in (b"\r\n", b"\n", b""):
                key, _, value = line.decode("latin-1").partition(":")
                headers[key.strip().lower()] = value.strip()
            if status >= 400:
                length = int(headers.get("content-length") or 0)
                raise DockerError(_error_message(reader.read(length), status), status)
        except OSError as exc:
            reader.close()
            sock.close()
            raise DockerError(f"Error attaching to exec: {exc}") from exc
        except DockerError:
            reader.close()
            sock.close()
            raise
        return _ExecSession(sock, reader)