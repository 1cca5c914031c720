"""HTTP transport for the director API.

This module provides:
- HttpTransport: Protocol for director requests (injectable for tests)
- RealHttpTransport: urllib implementation with basic auth and a pinned CA
- MockHttpTransport: canned responses keyed by method and path
"""

from __future__ import annotations

import base64
import json
import logging
import ssl
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from dctl.core.config import Credentials
from dctl.core.result import Err, Ok, Result

__all__ = [
    "HttpError",
    "HttpResponse",
    "HttpTransport",
    "MockHttpTransport",
    "RealHttpTransport",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: bytes = b""
    location: str | None = None

    def json(self) -> object:
        return json.loads(self.body.decode("utf-8")) if self.body else None

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@runtime_checkable
class HttpTransport(Protocol):
    """Protocol for director HTTP requests.

    Paths are relative to the director URL (``/deployments``). Redirects are
    not followed: asynchronous endpoints answer 302 with the task location.
    """

    @property
    def base_url(self) -> str: ...

    def request(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        content_type: str = "application/json",
    ) -> Result[HttpResponse, HttpError]: ...

    def upload_file(
        self, method: str, path: str, file_path: Path, content_type: str
    ) -> Result[HttpResponse, HttpError]: ...

    def download(self, path: str, dest: Path) -> Result[Path, HttpError]: ...


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[no-untyped-def]
        return None


class RealHttpTransport:
    """Director transport using urllib."""

    def __init__(
        self,
        base_url: str,
        *,
        ca_cert: str | None = None,
        credentials: Credentials | None = None,
        timeout: float = 30.0,
        user_agent: str = "dctl",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self._auth = _basic_auth(credentials) if credentials else None
        self._ssl_context = ssl.create_default_context(cadata=ca_cert) if ca_cert else (
            ssl.create_default_context()
        )
        self._opener = urllib.request.build_opener(
            _NoRedirect(), urllib.request.HTTPSHandler(context=self._ssl_context)
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self, content_type: str | None) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if content_type:
            headers["Content-Type"] = content_type
        if self._auth:
            headers["Authorization"] = self._auth
        return headers

    def _open(self, req: urllib.request.Request) -> Result[HttpResponse, HttpError]:
        url = req.full_url
        logger.debug("%s %s", req.get_method(), url)
        try:
            with self._opener.open(req, timeout=self.timeout) as response:
                return Ok(HttpResponse(status=response.status, body=response.read()))
        except urllib.error.HTTPError as e:
            if e.code in (301, 302, 303):
                return Ok(HttpResponse(status=e.code, location=e.headers.get("Location")))
            detail = _error_description(e.read())
            return Err(HttpError(url=url, status=e.code, message=detail or str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def request(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        content_type: str = "application/json",
    ) -> Result[HttpResponse, HttpError]:
        req = urllib.request.Request(
            self._base_url + path,
            data=body,
            method=method,
            headers=self._headers(content_type if body is not None else None),
        )
        return self._open(req)

    def upload_file(
        self, method: str, path: str, file_path: Path, content_type: str
    ) -> Result[HttpResponse, HttpError]:
        url = self._base_url + path
        try:
            size = file_path.stat().st_size
            with open(file_path, "rb") as handle:
                headers = self._headers(content_type)
                headers["Content-Length"] = str(size)
                req = urllib.request.Request(url, data=handle, method=method, headers=headers)
                return self._open(req)
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=f"Reading {file_path}: {e}"))

    def download(self, path: str, dest: Path) -> Result[Path, HttpError]:
        url = self._base_url + path
        req = urllib.request.Request(url, headers=self._headers(None))
        try:
            with self._opener.open(req, timeout=self.timeout) as response:
                dest.parent.mkdir(parents=True, exist_ok=True)
                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(8192)
                        if not chunk:
                            break
                        f.write(chunk)
            return Ok(dest)
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Download timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


def _basic_auth(credentials: Credentials) -> str | None:
    if credentials.is_client:
        user, secret = credentials.client, credentials.client_secret
    elif credentials.username and credentials.password:
        user, secret = credentials.username, credentials.password
    else:
        return None
    token = base64.b64encode(f"{user}:{secret}".encode()).decode("ascii")
    return f"Basic {token}"


def _error_description(body: bytes) -> str | None:
    # Director errors look like {"code": 70000, "description": "..."}
    try:
        data = json.loads(body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if isinstance(data, dict):
        description = data.get("description")
        if isinstance(description, str):
            return description
    return None


@dataclass
class MockHttpTransport:
    """Transport with canned responses for tests.

    Usage:
        transport = MockHttpTransport()
        transport.set("GET", "/info", HttpResponse(200, b'{"name": "lab"}'))
        transport.set_json("GET", "/deployments", [{"name": "cf"}])
    """

    base_url: str = "https://director.example.com:25555"
    responses: dict[tuple[str, str], list[HttpResponse | HttpError]] = field(default_factory=dict)
    calls: list[tuple[str, str, bytes | None]] = field(default_factory=list)
    downloads: dict[str, bytes] = field(default_factory=dict)

    def set(self, method: str, path: str, *responses: HttpResponse | HttpError) -> None:
        """Queue responses for a route; the last one repeats."""
        self.responses[(method, path)] = list(responses)

    def set_json(self, method: str, path: str, data: object, status: int = 200) -> None:
        self.set(method, path, HttpResponse(status=status, body=json.dumps(data).encode()))

    def set_task(self, method: str, path: str, task_id: int) -> None:
        self.set(method, path, HttpResponse(status=302, location=f"{self.base_url}/tasks/{task_id}"))

    def _respond(self, method: str, path: str) -> Result[HttpResponse, HttpError]:
        queued = self.responses.get((method, path))
        if not queued:
            return Err(HttpError(url=self.base_url + path, status=404, message="Not found (mock)"))
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def request(
        self,
        method: str,
        path: str,
        body: bytes | None = None,
        content_type: str = "application/json",
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append((method, path, body))
        return self._respond(method, path)

    def upload_file(
        self, method: str, path: str, file_path: Path, content_type: str
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append((method, path, file_path.read_bytes()))
        return self._respond(method, path)

    def download(self, path: str, dest: Path) -> Result[Path, HttpError]:
        self.calls.append(("GET", path, None))
        if path not in self.downloads:
            return Err(HttpError(url=self.base_url + path, status=404, message="Not found (mock)"))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.downloads[path])
        return Ok(dest)

    def paths(self, method: str | None = None) -> list[str]:
        return [p for m, p, _ in self.calls if method is None or m == method]
