"""
Backends through which a sync session pulls and pushes notes.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from logging import Logger
from typing import Any, Callable

import requests

from ..core.exceptions import RemoteError, RemoteErrorKind
from ..core.note import Note, RepoConfig
from ..remote.github import GitHubTreeService, classify_status
from ..remote.service import RemoteTreeService
from .pull import pull_notes
from .push import PushResult, push_notes

__all__ = [
    "DirectBackend",
    "HttpBackend",
    "ServiceFactory",
    "SyncBackend",
]

type ServiceFactory = Callable[[str, RepoConfig], RemoteTreeService]
"""
Creates a remote tree service from a token and repository config.
"""

REQUEST_TIMEOUT = 120.0
"""
Timeout for requests to the sync endpoints, which themselves perform many
remote calls.
"""


class SyncBackend(ABC):
    """
    Performs the network side of a sync. Calls are blocking; the session runs
    them off the event loop.
    """

    @abstractmethod
    def pull(self, config: RepoConfig) -> list[Note]:
        ...

    @abstractmethod
    def push(self, notes: list[Note], config: RepoConfig) -> PushResult:
        ...


class DirectBackend(SyncBackend):
    """
    Pulls and pushes in-process against a remote tree service.
    """

    _token: str
    _service_factory: ServiceFactory
    _logger: Logger

    def __init__(
        self,
        token: str,
        *,
        service_factory: ServiceFactory | None = None,
        logger: Logger | None = None,
    ):
        self._token = token
        self._service_factory = service_factory or GitHubTreeService
        self._logger = logger or logging.getLogger()

    def pull(self, config: RepoConfig) -> list[Note]:
        service = self._service_factory(self._token, config)
        return pull_notes(service, logger=self._logger)

    def push(self, notes: list[Note], config: RepoConfig) -> PushResult:
        service = self._service_factory(self._token, config)
        return push_notes(service, notes, logger=self._logger)


class HttpBackend(SyncBackend):
    """
    Pulls and pushes through the `/api/github/pull` and `/api/github/push`
    endpoints of a sync server.
    """

    _base_url: str
    _session: requests.Session
    _timeout: float

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout

        self._session.headers.update({"Authorization": f"Bearer {token}"})

    def pull(self, config: RepoConfig) -> list[Note]:
        response = self._request(
            "GET",
            "/api/github/pull",
            params={
                "owner": config.owner,
                "repo": config.repo,
                "branch": config.branch,
            },
        )

        if response.status_code != 200:
            raise _make_error(response)

        return [Note.model_validate(n) for n in response.json()["notes"]]

    def push(self, notes: list[Note], config: RepoConfig) -> PushResult:
        response = self._request(
            "POST",
            "/api/github/push",
            json={
                "notes": [note.to_json() for note in notes],
                "config": config.model_dump(),
            },
            headers={"Content-Type": "application/json"},
        )

        if response.status_code == 200:
            return PushResult()

        # partial failure carries per-item errors
        data = _get_json(response)
        if isinstance(data, dict) and data.get("errors"):
            return PushResult(errors=[str(e) for e in data["errors"]])

        raise _make_error(response)

    def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> requests.Response:
        try:
            return self._session.request(
                method,
                f"{self._base_url}{path}",
                timeout=self._timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise RemoteError(
                RemoteErrorKind.TRANSIENT, f"{method} '{path}' failed: {e}"
            ) from e


def _get_json(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _make_error(response: requests.Response) -> RemoteError:
    return RemoteError(
        classify_status(response.status_code, response.headers),
        response.text or f"Request failed with status {response.status_code}",
        status=response.status_code,
    )
