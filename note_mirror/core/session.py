"""
Implementation of sync session: decides when to pull and push.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from logging import Logger
from typing import TYPE_CHECKING, Any, Coroutine

from pydantic import ValidationError as PydanticValidationError

from .cache import LocalCache
from .exceptions import SyncError, ValidationError
from .note import Note, RepoConfig, fingerprint, is_placeholder
from .store import NoteStore

if TYPE_CHECKING:
    from ..sync.backend import SyncBackend

__all__ = [
    "SyncSession",
    "SyncStatus",
]

DEBOUNCE_DELAY = 2.0
"""
Quiet period in seconds after the last local change before pushing.
"""

PULL_INTERVAL = 60.0
"""
Period in seconds between background pulls.
"""

RESET_DELAY = 3.0
"""
Delay in seconds before a saved status returns to idle.
"""


class SyncStatus(Enum):
    """
    Status of the most recent push.
    """

    IDLE = auto()
    """Nothing in progress"""

    SYNCING = auto()
    """Push in progress"""

    SAVED = auto()
    """Push succeeded; returns to idle after a delay"""

    ERROR = auto()
    """Push failed; see {obj}`SyncSession.error`"""


class SyncSession:
    """
    Keeps a {obj}`NoteStore` mirrored to a remote repository.

    Local changes mark the session dirty and restart a debounce timer; once
    no further changes occur for `debounce_delay` seconds, the note set is
    pushed. A push is skipped entirely if the note set's fingerprint equals
    the fingerprint of the last synced note set.

    Pulls run once when the session starts or is configured, then every
    `pull_interval` seconds. A background pull only replaces local notes when
    doing so can't lose local data:

    - Local notes are clean and match the last synced fingerprint, or
    - There are no local notes, or
    - Local notes are only the unedited placeholder note

    and never when the remote returned no notes. Otherwise the pull is
    skipped; staleness is preferred over data loss.

    At most one pull or push is in flight at a time; further triggers wait
    their turn and are usually no-ops by then. Use as an async context
    manager, or call {obj}`SyncSession.start` and {obj}`SyncSession.close`
    from within a running event loop.

    Example:

    ```
    async with SyncSession(store, DirectBackend(token), config=config) as sync:
        store.add_note(title="Groceries")
        await sync.sync_now()
    ```
    """

    _store: NoteStore
    _backend: SyncBackend
    _cache: LocalCache
    _logger: Logger

    _config: RepoConfig | None
    """
    Repository to sync with, or `None` if not yet configured.
    """

    _last_synced_fingerprint: str | None
    """
    Fingerprint of the note set last known to be mirrored on the remote.
    """

    _dirty: bool
    """
    Set by any local change, cleared after a push which wrote the current
    note set.
    """

    _status: SyncStatus
    _error: str | None

    _debounce_delay: float
    _pull_interval: float
    _reset_delay: float

    _loop: asyncio.AbstractEventLoop | None
    _lock: asyncio.Lock | None
    _debounce_handle: asyncio.TimerHandle | None
    _reset_handle: asyncio.TimerHandle | None
    _pull_task: asyncio.Task | None
    _tasks: set[asyncio.Task]

    _started: bool = False
    _alive: bool = True
    """
    Cleared on close; results of in-flight calls are discarded afterward.
    """

    def __init__(
        self,
        store: NoteStore,
        backend: SyncBackend,
        *,
        cache: LocalCache | None = None,
        config: RepoConfig | None = None,
        debounce_delay: float = DEBOUNCE_DELAY,
        pull_interval: float = PULL_INTERVAL,
        reset_delay: float = RESET_DELAY,
        logger: Logger | None = None,
    ):
        """
        :param store: Notes to keep in sync
        :param backend: Backend performing pulls and pushes
        :param cache: Cache for config, fingerprint and dirty flag; defaults to the store's cache
        :param config: Repository to sync with; if omitted, loaded from cache
        :param debounce_delay: Quiet period before an automatic push
        :param pull_interval: Period between background pulls
        :param reset_delay: Delay before saved status returns to idle
        :param logger: Logger to use, or `None` to use default logger
        """
        self._store = store
        self._backend = backend
        self._cache = cache if cache is not None else store.cache
        self._logger = logger or logging.getLogger()

        self._debounce_delay = debounce_delay
        self._pull_interval = pull_interval
        self._reset_delay = reset_delay

        self._status = SyncStatus.IDLE
        self._error = None

        self._loop = None
        self._lock = None
        self._debounce_handle = None
        self._reset_handle = None
        self._pull_task = None
        self._tasks = set()

        self._last_synced_fingerprint = self._cache.get("fingerprint")
        self._dirty = bool(self._cache.get("dirty", False))

        if config is not None:
            self._config = config
            self._cache.set("config", config.model_dump())
        else:
            self._config = self._load_config()

    async def __aenter__(self) -> SyncSession:
        self._logger.debug(f"Entering context: {self}")
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, traceback):
        if exc_type:
            self._logger.error(f"Exiting context with error: {self}")
        else:
            self._logger.debug(f"Exiting context: {self}")

        await self.close()

    def __repr__(self) -> str:
        return f"SyncSession(config={self._config}, status={self._status.name})"

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def error(self) -> str | None:
        """
        Message of the last failed push, if status is {obj}`SyncStatus.ERROR`.
        """
        return self._error

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def config(self) -> RepoConfig | None:
        return self._config

    @property
    def last_synced_fingerprint(self) -> str | None:
        return self._last_synced_fingerprint

    @property
    def is_synced(self) -> bool:
        """
        Whether local notes match the note set last synced with the remote.
        """
        return fingerprint(self._store.notes) == self._last_synced_fingerprint

    @property
    def alive(self) -> bool:
        return self._alive

    def start(self):
        """
        Begin tracking local changes and, if configured, pulling periodically.
        Must be called from within a running event loop.
        """
        assert self._alive, f"Attempt to start closed session {self}"

        if self._started:
            return

        self._loop = asyncio.get_running_loop()
        self._started = True

        self._store.subscribe(self.notify_change)

        if self._config is not None:
            self._start_pull_schedule()

    async def close(self):
        """
        Stop tracking changes and cancel pending timers. Calls already in
        flight may complete, but their results are discarded.
        """
        if not self._alive:
            return

        self._alive = False
        self._store.unsubscribe(self.notify_change)

        self._cancel_debounce()

        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

        if self._pull_task is not None:
            self._pull_task.cancel()
            try:
                await self._pull_task
            except asyncio.CancelledError:
                pass
            self._pull_task = None

    def configure(self, config: RepoConfig):
        """
        Set repository to sync with. If the session is running, pulls from
        it immediately and then periodically.
        """
        if not config.is_complete:
            raise ValidationError(
                [f"Repository owner and name are required: '{config}'"]
            )

        self._config = config
        self._cache.set("config", config.model_dump())

        if self._started and self._alive:
            self._start_pull_schedule()

    def notify_change(self):
        """
        Record a local change and restart the debounce timer. Registered with
        the store upon start.
        """
        if not self._alive:
            return

        self._set_dirty(True)

        if not self._started or self._config is None:
            return

        assert self._loop is not None

        self._cancel_debounce()
        self._debounce_handle = self._loop.call_later(
            self._debounce_delay, self._on_debounce
        )

    async def push(self, *, manual: bool = False) -> bool:
        """
        Push local notes unless they match the last synced fingerprint.

        Failure is recorded in {obj}`SyncSession.status` and
        {obj}`SyncSession.error`; if `manual`, {obj}`SyncError` is then raised.

        :param manual: Raise upon failure rather than only recording it
        :returns: Whether the remote is known to match local notes
        """
        config = self._config
        if config is None:
            if manual:
                raise ValidationError(["Repository is not configured"])
            return False

        async with self._get_lock():
            if not self._alive:
                return False

            notes = self._store.notes
            current_fingerprint = fingerprint(notes)

            if current_fingerprint == self._last_synced_fingerprint:
                self._logger.debug("No changes since last sync, skipping push")
                return True

            self._set_status(SyncStatus.SYNCING)

            errors: list[str]
            try:
                result = await asyncio.to_thread(
                    self._backend.push, notes, config
                )
            except Exception as e:
                errors = [str(e)]
            else:
                errors = result.errors

            if not self._alive:
                self._logger.debug(
                    "Session closed during push, discarding result"
                )
                return False

            if errors:
                self._logger.error(
                    f"Push to {config} failed: {'; '.join(errors)}"
                )
                self._set_status(SyncStatus.ERROR, "; ".join(errors))

                if manual:
                    raise SyncError(errors)
                return False

            self._set_synced_fingerprint(current_fingerprint)

            # notes may have changed while push was in flight
            if fingerprint(self._store.notes) == current_fingerprint:
                self._set_dirty(False)

            self._logger.info(f"Pushed {len(notes)} notes to {config}")
            self._set_status(SyncStatus.SAVED)

            return True

    async def sync_now(self) -> bool:
        """
        Push immediately rather than waiting for the debounce timer. Still
        skipped if nothing changed since the last sync.
        """
        self._cancel_debounce()
        return await self.push(manual=True)

    async def pull(self, *, force: bool = False) -> bool:
        """
        Pull notes from the remote and replace local notes if safe, or
        unconditionally if `force`.

        Unless forced, failures are logged and swallowed.

        :param force: Replace local notes regardless of local changes, and raise upon failure
        :returns: Whether local notes were replaced
        """
        config = self._config
        if config is None:
            if force:
                raise ValidationError(["Repository is not configured"])
            return False

        async with self._get_lock():
            if not self._alive:
                return False

            try:
                remote_notes = await asyncio.to_thread(
                    self._backend.pull, config
                )
            except Exception as e:
                if force:
                    raise
                self._logger.warning(
                    f"Background pull from {config} failed: {e}"
                )
                return False

            if not self._alive:
                self._logger.debug(
                    "Session closed during pull, discarding result"
                )
                return False

            if force:
                self._apply_pull(remote_notes)
                return True

            if not self._is_pull_safe(remote_notes):
                return False

            try:
                self._apply_pull(remote_notes)
            except ValidationError as e:
                self._logger.warning(f"Pulled notes are invalid, skipping: {e}")
                return False

            return True

    async def refresh(self) -> bool:
        """
        Replace local notes with the remote's, discarding local changes.
        """
        return await self.pull(force=True)

    def _is_pull_safe(self, remote_notes: list[Note]) -> bool:
        """
        Check whether applying the pulled notes can't lose local data.
        """
        local_notes = self._store.notes
        placeholder = is_placeholder(local_notes)

        if not remote_notes:
            if local_notes and not placeholder:
                self._logger.warning(
                    f"Remote returned no notes while {len(local_notes)} local notes exist, rejecting pull"
                )
            return False

        mirrored = (
            not self._dirty
            and fingerprint(local_notes) == self._last_synced_fingerprint
        )

        if not (mirrored or not local_notes or placeholder):
            self._logger.info(
                "Local notes have changed since last sync, skipping pull"
            )
            return False

        return True

    def _apply_pull(self, remote_notes: list[Note]):
        self._cancel_debounce()

        self._store.set_notes(remote_notes, notify=False)
        self._set_synced_fingerprint(fingerprint(remote_notes))
        self._set_dirty(False)

        self._logger.info(
            f"Applied {len(remote_notes)} notes from {self._config}"
        )

    def _on_debounce(self):
        self._debounce_handle = None
        self._spawn(self.push())

    def _cancel_debounce(self):
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _start_pull_schedule(self):
        assert self._loop is not None

        if self._pull_task is not None:
            self._pull_task.cancel()

        self._pull_task = self._loop.create_task(self._pull_periodically())

    async def _pull_periodically(self):
        while self._alive:
            try:
                await self.pull()
            except Exception as e:
                self._logger.error(f"Background pull failed: {e}")
            await asyncio.sleep(self._pull_interval)

    def _spawn(self, coro: Coroutine[Any, Any, Any]):
        """
        Run coroutine as a task, keeping a reference until it completes.
        """
        assert self._loop is not None

        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _set_status(self, status: SyncStatus, error: str | None = None):
        self._status = status
        self._error = error

        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

        if status is SyncStatus.SAVED and self._loop is not None:
            self._reset_handle = self._loop.call_later(
                self._reset_delay, self._reset_status
            )

    def _reset_status(self):
        self._reset_handle = None

        if self._alive and self._status is SyncStatus.SAVED:
            self._status = SyncStatus.IDLE

    def _set_dirty(self, dirty: bool):
        self._dirty = dirty
        self._cache.set("dirty", dirty)

    def _set_synced_fingerprint(self, value: str):
        self._last_synced_fingerprint = value
        self._cache.set("fingerprint", value)

    def _load_config(self) -> RepoConfig | None:
        saved_config = self._cache.get("config")
        if saved_config is None:
            return None

        try:
            return RepoConfig.model_validate(saved_config)
        except PydanticValidationError as e:
            self._logger.error(f"Failed to parse saved config: {e}")
            return None
