"""
Read-only views of local notes.
"""
from __future__ import annotations

from markdownify import markdownify
from rich.markdown import Markdown
from rich.tree import Tree
from typer import Argument, Context, Exit

from ...core import NoteNotFoundError
from ._utils import MainTyper, console, get_root_context, logger

app = MainTyper(
    "note",
    help="View local notes",
)


@app.command()
def tree(ctx: Context):
    """
    Print hierarchy of local notes
    """
    root_context = get_root_context(ctx)
    store = root_context.create_store()

    root = Tree(f"[bold]{len(store)} notes[/bold]")
    branches: list[Tree] = [root]

    for depth, note in store.walk():
        # trim branches back to this note's parent
        del branches[depth + 1 :]

        label = f"{note.title or '(untitled)'} [dim]{note.id}[/dim]"
        if note.id == store.active_note_id:
            label = f"[bold]{label}[/bold]"

        branches.append(branches[-1].add(label))

    console.print(root)


@app.command()
def show(
    ctx: Context,
    note_id: str = Argument(help="Id of note to show"),
):
    """
    Print a note's content
    """
    root_context = get_root_context(ctx)
    store = root_context.create_store()

    try:
        note = store.get(note_id)
    except NoteNotFoundError as e:
        logger.error(str(e))
        raise Exit(code=1)

    console.print(f"[bold]{note.title}[/bold]")
    console.print(
        f"[dim]Created {note.created_at}, updated {note.updated_at}[/dim]"
    )
    console.print(Markdown(markdownify(note.content, heading_style="ATX")))
