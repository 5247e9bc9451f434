"""
Entry point of `note-mirror` CLI.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import dotenv
import typer
from click.exceptions import BadParameter, MissingParameter
from pydantic import ValidationError
from typer import Context, Exit, Option

from ...core import LocalCache, NoteStore, RemoteError, SyncSession
from ...core.note import DEFAULT_BRANCH
from ...remote.github import GitHubTreeService
from ...remote.walker import NOTES_ROOT, list_all_files
from ...sync.backend import SyncBackend
from ..config import Config, InstanceConfig
from . import note, sync
from ._utils import MainTyper, get_root_context, logger, lookup_param

DEFAULT_CACHE_DIR = Path(typer.get_app_dir("note-mirror"))

app = MainTyper(
    "note-mirror",
    help="Mirror a hierarchy of notes to a folder in a GitHub repository",
)


@app.callback()
def main(
    ctx: Context,
    token: str
    | None = Option(
        None,
        help="GitHub token with access to the repository",
        envvar="GITHUB_TOKEN",
    ),
    owner: str
    | None = Option(
        None,
        help="Repository owner",
        envvar="NOTE_MIRROR_OWNER",
    ),
    repo: str
    | None = Option(
        None,
        help="Repository name",
        envvar="NOTE_MIRROR_REPO",
    ),
    branch: str = Option(
        DEFAULT_BRANCH,
        help="Branch to sync with",
        envvar="NOTE_MIRROR_BRANCH",
    ),
    cache_dir: Path = Option(
        DEFAULT_CACHE_DIR,
        help="Folder holding local notes and sync state",
        envvar="NOTE_MIRROR_CACHE_DIR",
        file_okay=False,
    ),
    server_url: str
    | None = Option(
        None,
        "--server",
        help="Sync through a note-mirror server rather than accessing GitHub directly",
        envvar="NOTE_MIRROR_SERVER",
    ),
    instance_name: str
    | None = Option(
        None,
        "--instance",
        help="Instance name as configured in .yaml",
        envvar="NOTE_MIRROR_INSTANCE",
    ),
    config_file: Path = Option(
        "note-mirror.yaml",
        help=".yaml file containing instance info, only applicable with --instance",
        envvar="NOTE_MIRROR_CONFIG_FILE",
        dir_okay=False,
    ),
):
    # load environment variables from .env file if it exists
    dotenv.load_dotenv(Path(".env").resolve())

    if instance_name:
        root_context = RootContext.from_config(
            ctx=ctx,
            instance_name=instance_name,
            config_file=config_file,
            token=token,
        )
    else:
        instance: InstanceConfig | None = None

        if owner and repo:
            instance = InstanceConfig(
                owner=owner,
                repo=repo,
                branch=branch,
                token=token,
                cache_dir=cache_dir,
                server_url=server_url,
            )

        root_context = RootContext(
            ctx=ctx,
            instance=instance,
            token=token,
            cache_dir=cache_dir,
            from_file=False,
        )

    ctx.obj = root_context


app.add_typer(sync.app)
app.add_typer(note.app)


@app.command()
def check(ctx: Context):
    """
    Check access to the configured repository
    """
    root_context = get_root_context(ctx)
    instance = root_context.require_instance()
    service = root_context.create_service()

    try:
        files = list_all_files(service, NOTES_ROOT)
    except RemoteError as e:
        logger.error(f"Failed to access {instance.repo_config}: {e}")
        raise Exit(code=1)

    logger.info(
        f"Connected to {instance.repo_config}, found {len(files)} files in '{NOTES_ROOT}/'"
    )


@app.command()
def serve(
    host: str = Option(
        "127.0.0.1",
        help="Interface to bind",
    ),
    port: int = Option(
        8000,
        help="Port to listen on",
    ),
):
    """
    Run the pull/push HTTP endpoints
    """
    import uvicorn

    from ...server import create_app

    uvicorn.run(create_app(logger=logger), host=host, port=port)


def run():
    app()


@dataclass(kw_only=True)
class RootContext:
    ctx: Context
    instance: InstanceConfig | None
    token: str | None
    cache_dir: Path
    from_file: bool

    @classmethod
    def from_config(
        cls,
        *,
        ctx: Context,
        instance_name: str,
        config_file: Path,
        token: str | None,
    ) -> RootContext:
        # ensure config file exists
        if not config_file.is_file():
            raise BadParameter(
                message=f"file does not exist: {config_file}",
                ctx=ctx,
                param=lookup_param(ctx, "config_file"),
            )

        # get config from file
        try:
            config = Config.load_yaml(config_file)
        except (ValueError, ValidationError) as e:
            raise BadParameter(
                f"failed to load config file '{config_file}': {e}",
                ctx=ctx,
                param=lookup_param(ctx, "config_file"),
            )

        # get instance from config
        instance = config.instances.get(instance_name)
        if not instance:
            raise BadParameter(
                f"instance '{instance_name}' not found in '{config_file}'",
                ctx=ctx,
                param=lookup_param(ctx, "instance_name"),
            )

        return RootContext(
            ctx=ctx,
            instance=instance,
            token=instance.token or token,
            cache_dir=instance.cache_dir or DEFAULT_CACHE_DIR / instance_name,
            from_file=True,
        )

    def require_instance(self) -> InstanceConfig:
        if self.instance is None:
            raise MissingParameter(
                message="either --owner and --repo, or --instance must be provided",
                ctx=self.ctx,
                param_hint=["owner", "repo", "instance"],
                param_type="option",
            )
        return self.instance

    def require_token(self) -> str:
        if not self.token:
            raise MissingParameter(
                message="--token or GITHUB_TOKEN must be provided",
                ctx=self.ctx,
                param_hint=["token"],
                param_type="option",
            )
        return self.token

    def create_store(self) -> NoteStore:
        cache = LocalCache(self.cache_dir, logger=logger)
        return NoteStore(cache, logger=logger)

    def create_service(self) -> GitHubTreeService:
        """
        Create service accessing the repository directly, regardless of any
        configured server.
        """
        instance = self.require_instance()
        return GitHubTreeService(self.require_token(), instance.repo_config)

    def create_backend(self) -> SyncBackend:
        instance = self.require_instance()
        return instance.create_backend(self.require_token(), logger=logger)

    def create_session(self, store: NoteStore) -> SyncSession:
        """
        Create sync session for the configured repository; not started, so
        only manual operations are performed.
        """
        instance = self.require_instance()
        return SyncSession(
            store,
            self.create_backend(),
            config=instance.repo_config,
            logger=logger,
        )


if __name__ == "__main__":
    app()
