"""Gist command handlers."""

import asyncio

from connectors.models import Gist

from ..editor import EditorError, ExternalEditor
from ..session import EditorSession


def format_gist(gist: Gist, index: int) -> str:
    """Render one gist summary with its files."""
    file_count = len(gist.files)
    created = gist.created_at.strftime("%Y-%m-%d") if gist.created_at else "unknown"
    lines = [
        f"{index}. {gist.title}",
        f"     {file_count} file{'s' if file_count != 1 else ''} • Created {created}",
        f"     ID: {gist.id}",
    ]
    for name, gist_file in gist.files.items():
        lines.append(f"       - {name} ({gist_file.language or 'text'})")
    return "\n".join(lines)


def list_gists(session: EditorSession):
    """List the user's gists."""
    gists = asyncio.run(session.on_list_gists())
    if not gists:
        return

    print("\n=== Your Gists ===")
    for i, gist in enumerate(gists, 1):
        print(format_gist(gist, i))
    print("\nOpen a file with: /open <number|gist_id> <file name>\n")


def resolve_gist_id(listing: list[Gist], ref: str) -> str:
    """Map a list number from the last /gists to its gist ID."""
    if ref.isdigit() and 1 <= int(ref) <= len(listing):
        return listing[int(ref) - 1].id
    return ref


def open_file(session: EditorSession, args: list[str]):
    """Open one file of a gist in the editor buffer."""
    gist_ref = args[0] if args else input("Gist number or ID: ").strip()
    if not gist_ref:
        print("Error: Gist ID is required.\n")
        return

    gist_id = resolve_gist_id(session.listing, gist_ref)

    if len(args) > 1:
        file_name = args[1]
    else:
        listed = next((g for g in session.listing if g.id == gist_id), None)
        if listed is not None and len(listed.files) == 1:
            file_name = next(iter(listed.files))
        else:
            file_name = input("File name: ").strip()
    if not file_name:
        print("Error: File name is required.\n")
        return

    if asyncio.run(session.on_open(gist_id, file_name)):
        print(f"\n=== {session.state.gist.title} / {file_name} ===")
        print("Use /show to view, /edit to edit, /save to upload, /close to close.\n")


def show_file(session: EditorSession):
    """Print the content of the open file."""
    if not session.state.is_open:
        print("Error: No gist loaded. Use /open first.\n")
        return

    print(f"\n=== {session.state.gist.title} / {session.state.file_name} ===\n")
    print(session.editor.get_value())
    print()


def edit_file(session: EditorSession):
    """Edit the open file in the user's external editor."""
    if not session.state.is_open:
        print("Error: No gist loaded. Use /open first.\n")
        return

    editor = session.editor
    if not isinstance(editor, ExternalEditor):
        print("Error: No external editor available.\n")
        return

    try:
        changed = editor.edit(session.state.file_name)
    except EditorError as e:
        print(f"\nError: {e}\n")
        return

    if changed:
        print("\n✓ Changes kept in the buffer. Use /save to upload them.\n")
    else:
        print("\nNo changes made.\n")


def save_file(session: EditorSession):
    """Save the open file back to GitHub."""
    asyncio.run(session.on_save())


def close_file(session: EditorSession):
    """Close the open file after confirmation."""
    if not session.state.is_open:
        print("No gist is open.\n")
        return

    answer = input("Close editor? Any unsaved changes will be lost. [y/N]: ").strip().lower()
    if answer in ("y", "yes"):
        session.on_close()
        print("✓ Editor closed.\n")
