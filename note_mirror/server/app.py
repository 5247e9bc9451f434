"""
FastAPI application exposing the pull and push endpoints.
"""
from __future__ import annotations

import logging
from logging import Logger
from typing import Any

from fastapi import APIRouter, FastAPI, Header, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import RemoteError, RemoteErrorKind
from ..core.note import DEFAULT_BRANCH, Note, RepoConfig
from ..remote.github import GitHubTreeService
from ..sync.backend import ServiceFactory
from ..sync.pull import pull_notes
from ..sync.push import push_notes

__all__ = [
    "PushRequest",
    "create_app",
]

API_PREFIX = "/api/github"


class PushRequest(BaseModel):
    """
    Body of push request. Config is validated by the handler so an
    incomplete config is reported as a bad request.
    """

    notes: list[Note] = []
    config: dict[str, Any] | None = None


def create_app(
    service_factory: ServiceFactory | None = None,
    *,
    logger: Logger | None = None,
) -> FastAPI:
    """
    Create application; `service_factory` creates the remote tree service
    for each request from the caller's token and repository config.
    """
    logger = logger or logging.getLogger()
    factory: ServiceFactory = service_factory or GitHubTreeService

    router = APIRouter(prefix=API_PREFIX, tags=["sync"])

    @router.get("/pull")
    def pull(
        owner: str | None = None,
        repo: str | None = None,
        branch: str | None = None,
        authorization: str | None = Header(None),
    ) -> Response:
        """
        Get all notes from the repository's notes folder.
        """
        token = _get_token(authorization)
        if token is None:
            return PlainTextResponse("Unauthorized", status_code=401)

        if not owner or not repo:
            return PlainTextResponse("Missing owner or repo", status_code=400)

        config = RepoConfig(
            owner=owner, repo=repo, branch=branch or DEFAULT_BRANCH
        )

        try:
            notes = pull_notes(factory(token, config), logger=logger)
        except RemoteError as e:
            logger.error(f"Pull from {config} failed: {e}")
            return _error_response(e)

        return JSONResponse({"notes": [note.to_json() for note in notes]})

    @router.post("/push")
    async def push(
        request: Request,
        authorization: str | None = Header(None),
    ) -> Response:
        """
        Write all notes to the repository and delete note files which no
        longer belong to any note.

        The body is only parsed once the caller is authenticated.
        """
        token = _get_token(authorization)
        if token is None:
            return PlainTextResponse("Unauthorized", status_code=401)

        try:
            payload = PushRequest.model_validate(await request.json())
        except ValueError:
            # malformed JSON or notes
            return PlainTextResponse("Invalid Request", status_code=400)

        try:
            config = RepoConfig.model_validate(payload.config or {})
        except PydanticValidationError:
            return PlainTextResponse("Invalid Config", status_code=400)

        if not config.is_complete:
            return PlainTextResponse("Invalid Config", status_code=400)

        try:
            result = await run_in_threadpool(
                push_notes, factory(token, config), payload.notes, logger=logger
            )
        except RemoteError as e:
            return _error_response(e, prefix="Failed to access repo: ")

        if not result.success:
            return JSONResponse(
                {"success": False, "errors": result.errors}, status_code=500
            )

        logger.info(
            f"Pushed {len(payload.notes)} notes to {config}: "
            f"{result.written} written, {result.unchanged} unchanged, "
            f"{result.deleted} deleted"
        )
        return JSONResponse({"success": True})

    app = FastAPI(
        title="note-mirror",
        description="Mirror a note hierarchy to a remote repository",
    )
    app.include_router(router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def _get_token(authorization: str | None) -> str | None:
    """
    Get credential from `Authorization` header, accepting `Bearer <token>`
    and `token <token>`.
    """
    if not authorization:
        return None

    scheme, _, credential = authorization.strip().partition(" ")

    if scheme.lower() not in ("bearer", "token") or not credential.strip():
        return None

    return credential.strip()


def _error_response(error: RemoteError, *, prefix: str = "") -> Response:
    status_code = 401 if error.kind is RemoteErrorKind.UNAUTHORIZED else 500
    return PlainTextResponse(
        f"{prefix}{error.message}", status_code=status_code
    )
