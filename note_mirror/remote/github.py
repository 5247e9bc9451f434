"""
Remote file tree backed by the GitHub contents API.
"""
from __future__ import annotations

import base64
import logging
from logging import Logger
from typing import Any, Mapping
from urllib.parse import quote

import requests

from ..core.exceptions import RemoteError, RemoteErrorKind
from ..core.note import RepoConfig
from .service import RemoteEntry, RemoteFile, RemoteTreeService

__all__ = [
    "GITHUB_API_URL",
    "GitHubTreeService",
    "classify_status",
]

GITHUB_API_URL = "https://api.github.com"

REQUEST_TIMEOUT = 30.0
"""
Timeout for each request, in seconds.
"""

API_VERSION = "2022-11-28"


class GitHubTreeService(RemoteTreeService):
    """
    Access files of one repository and branch via
    `/repos/{owner}/{repo}/contents/{path}`, authenticated with a bearer
    token.
    """

    _token: str
    _api_url: str
    _session: requests.Session
    _timeout: float
    _logger: Logger

    def __init__(
        self,
        token: str,
        config: RepoConfig,
        *,
        api_url: str = GITHUB_API_URL,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
        logger: Logger | None = None,
    ):
        super().__init__(config)

        self._token = token
        self._api_url = api_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._logger = logger or logging.getLogger()

        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            }
        )

    def __repr__(self) -> str:
        return f"GitHubTreeService({self.config})"

    def list_dir(self, path: str) -> list[RemoteEntry]:
        data = self._request("GET", path, params={"ref": self.config.branch})

        if not isinstance(data, list):
            # path refers to a file rather than a folder
            return []

        entries: list[RemoteEntry] = []

        for item in data:
            entry_type = item.get("type")
            if entry_type not in ("file", "dir"):
                self._logger.debug(
                    f"Skipping entry of type '{entry_type}': '{item.get('path')}'"
                )
                continue

            entries.append(
                RemoteEntry(
                    type=entry_type,
                    path=item["path"],
                    name=item["name"],
                    sha=item.get("sha"),
                )
            )

        return entries

    def read_file(self, path: str) -> RemoteFile:
        data = self._request("GET", path, params={"ref": self.config.branch})

        if not isinstance(data, dict) or data.get("type") != "file":
            raise RemoteError(
                RemoteErrorKind.FATAL, f"Not a file: '{path}'", status=None
            )

        if data.get("encoding") == "base64" and data.get("content") is not None:
            content = base64.b64decode(data["content"])
        else:
            # large files are returned without inline content
            content = self._request_raw(path)

        return RemoteFile(
            path=data["path"], content=content, sha=data.get("sha")
        )

    def write_file(
        self,
        path: str,
        content: bytes,
        *,
        message: str,
        sha: str | None = None,
    ):
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": self.config.branch,
        }

        if sha is not None:
            body["sha"] = sha

        self._request("PUT", path, json=body)

    def delete_file(self, path: str, *, message: str, sha: str | None):
        body = {
            "message": message,
            "sha": sha,
            "branch": self.config.branch,
        }
        self._request("DELETE", path, json=body)

    def _url(self, path: str) -> str:
        owner = quote(self.config.owner, safe="")
        repo = quote(self.config.repo, safe="")
        quoted_path = quote(path.strip("/"))
        return f"{self._api_url}/repos/{owner}/{repo}/contents/{quoted_path}"

    def _send(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            response = self._session.request(
                method, self._url(path), timeout=self._timeout, **kwargs
            )
        except requests.RequestException as e:
            raise RemoteError(
                RemoteErrorKind.TRANSIENT, f"{method} '{path}' failed: {e}"
            ) from e

        if not response.ok:
            raise _make_error(method, path, response)

        return response

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._send(method, path, **kwargs)
        return response.json() if response.content else None

    def _request_raw(self, path: str) -> bytes:
        response = self._send(
            "GET",
            path,
            params={"ref": self.config.branch},
            headers={"Accept": "application/vnd.github.raw+json"},
        )
        return response.content


def classify_status(
    status: int, headers: Mapping[str, str] | None = None
) -> RemoteErrorKind:
    """
    Map an HTTP status code from the remote to an error kind.
    """
    headers = headers or {}

    if status == 404:
        return RemoteErrorKind.NOT_FOUND
    if status == 401:
        return RemoteErrorKind.UNAUTHORIZED
    if status == 403:
        # primary rate limit is reported as 403 with no remaining requests
        if (
            headers.get("X-RateLimit-Remaining") == "0"
            or "Retry-After" in headers
        ):
            return RemoteErrorKind.TRANSIENT
        return RemoteErrorKind.UNAUTHORIZED
    if status == 429 or status >= 500:
        return RemoteErrorKind.TRANSIENT
    return RemoteErrorKind.FATAL


def _make_error(
    method: str, path: str, response: requests.Response
) -> RemoteError:
    try:
        detail = response.json().get("message", response.text)
    except (ValueError, AttributeError):
        detail = response.text

    kind = classify_status(response.status_code, response.headers)

    return RemoteError(
        kind,
        f"{method} '{path}' returned {response.status_code}: {detail}",
        status=response.status_code,
    )
