"""
Manual pull/push between the local cache and the repository.
"""
from __future__ import annotations

import asyncio

import typer
from typer import Context, Exit, Option

from ...core import RemoteError, SyncError
from ...sync.push import push_notes
from ._utils import MainTyper, console, format_flag, get_root_context, logger

app = MainTyper(
    "sync",
    help="Synchronize local notes with the repository",
)


@app.command()
def pull(
    ctx: Context,
    yes: bool = Option(
        False,
        "-y",
        "--yes",
        help="Don't ask for confirmation before replacing local notes",
    ),
):
    """
    Replace local notes with notes from the repository
    """
    root_context = get_root_context(ctx)
    store = root_context.create_store()
    session = root_context.create_session(store)

    if not yes:
        if not typer.confirm(
            f"This will replace {len(store)} local notes with notes from "
            f"{session.config}. Any unsynced local changes will be lost. "
            "Continue?"
        ):
            return

    try:
        asyncio.run(session.refresh())
    except RemoteError as e:
        logger.error(f"Failed to pull from {session.config}: {e}")
        raise Exit(code=1)

    logger.info(f"Pulled {len(store)} notes from {session.config}")


@app.command()
def push(
    ctx: Context,
    dry_run: bool = Option(
        False,
        "--dry-run",
        help="Only log files which would be written or deleted",
    ),
):
    """
    Push local notes to the repository, deleting files of removed notes
    """
    root_context = get_root_context(ctx)
    store = root_context.create_store()

    if dry_run:
        try:
            result = push_notes(
                root_context.create_service(),
                store.notes,
                logger=logger,
                dry_run=True,
            )
        except RemoteError as e:
            logger.error(f"Failed to access repository: {e}")
            raise Exit(code=1)

        logger.info(
            f"Would write {result.written} and delete {result.deleted} files, "
            f"{result.unchanged} unchanged"
        )
        return

    session = root_context.create_session(store)

    if session.is_synced:
        logger.info("No changes to push")
        return

    try:
        asyncio.run(session.sync_now())
    except SyncError as e:
        errors = "\n".join(e.errors)
        logger.error(f"Found errors upon pushing notes:\n{errors}")
        raise Exit(code=1)


@app.command()
def status(ctx: Context):
    """
    Show state of local notes relative to the last sync
    """
    root_context = get_root_context(ctx)
    store = root_context.create_store()
    session = root_context.create_session(store)

    console.print(f"Repository: {session.config}")
    console.print(f"Local cache: {store.cache.root}")
    console.print(f"Notes: {len(store)}")
    console.print(f"Changed locally: {format_flag(session.dirty)}")
    console.print(f"Matches last sync: {format_flag(session.is_synced)}")
