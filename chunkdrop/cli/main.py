"""chunkdrop CLI - Main commands."""
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

app = typer.Typer(
    name="chunkdrop",
    help="Upload files and folder trees, chunking anything over 20 MB",
    add_completion=False
)
console = Console()


# Session path: ~/.config/chunkdrop/session.session
def get_session_path() -> Path:
    config_dir = Path.home() / ".config" / "chunkdrop"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "session"


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def load_stored_session():
    """Return stored session data or None."""
    from chunkdrop.core.session import SQLiteSession

    session_file = get_session_path().with_suffix(".session")
    if not session_file.exists():
        return None
    session = SQLiteSession(str(get_session_path()))
    try:
        return session.load()
    finally:
        session.close()


def mask(secret: Optional[str]) -> str:
    if not secret:
        return "-"
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


class RichProgressObserver:
    """Renders batch progress with rich progress bars."""

    def __init__(self, progress: Progress):
        self._progress = progress
        self._batch_task = None
        self._file_task = None

    def on_batch_start(self, batch):
        self._batch_task = self._progress.add_task(
            f"{batch.total_files} files", total=batch.total_bytes or batch.total_files
        )

    def on_file_start(self, entry, batch):
        self._file_task = self._progress.add_task(f"  {entry.path}", total=None)

    def on_file_progress(self, entry, chunk, batch):
        if chunk.waiting:
            description = f"  {entry.path} (waiting for merge)"
        elif chunk.merging:
            description = f"  {entry.path} (merging)"
        else:
            description = f"  {entry.path} (chunk {chunk.completed}/{chunk.total})"
        self._progress.update(
            self._file_task,
            description=description,
            total=chunk.total,
            completed=chunk.completed
        )

    def on_file_done(self, entry, result, error, batch):
        self._progress.remove_task(self._file_task)
        self._file_task = None
        if error is not None:
            self._progress.console.print(f"[red]✗ {entry.path}: {error}[/red]")
        else:
            self._progress.console.print(f"[green]✓ {entry.path}[/green]")
        completed = batch.completed_bytes if batch.total_bytes else batch.completed_files
        self._progress.update(self._batch_task, completed=completed)

    def on_batch_complete(self, summary):
        pass


def print_summary(summary) -> None:
    """Print terminal summary of a batch."""
    from chunkdrop.core.utils import format_size

    if summary.fail_count:
        console.print(
            f"[yellow]Upload finished: {summary.success_count} succeeded, "
            f"{summary.fail_count} failed[/yellow]"
        )
        table = Table(title="Failed files")
        table.add_column("Path")
        table.add_column("Size", justify="right")
        table.add_column("Stage", style="cyan")
        table.add_column("Error", style="red")
        for failure in summary.failures:
            stage = failure.stage or "-"
            if failure.chunk_index is not None:
                stage = f"{stage} {failure.chunk_index + 1}"
            table.add_row(failure.path, format_size(failure.size), stage, failure.error)
        console.print(table)
    else:
        console.print(
            f"[green]Upload finished: {summary.success_count} files "
            f"({format_size(summary.total_bytes)}) in {summary.elapsed:.1f}s[/green]"
        )


@app.command()
def login(
    server: str = typer.Option(..., "--server", "-s", help="Upload server URL"),
    token: str = typer.Option(None, "--token", "-t", help="Bearer token"),
    auth_code: str = typer.Option(None, "--auth-code", "-a", help="Upload auth code"),
    channel: str = typer.Option(None, "--channel", "-c", help="Default upload channel"),
):
    """Store credentials for an upload server."""
    from chunkdrop import ChunkDropClient, APIConfig

    if not token and not auth_code:
        token = typer.prompt("Token", hide_input=True)

    async def do_login():
        session_path = get_session_path()
        client = ChunkDropClient(str(session_path), config=APIConfig.for_server(server))

        try:
            await client.login(token=token, auth_code=auth_code, upload_channel=channel)
            console.print(f"[green]Credentials saved for {server}[/green]")
            console.print(f"Session saved to: {session_path}.session")
        except ValueError as e:
            console.print(f"[red]Login failed: {e}[/red]")
            raise typer.Exit(1)
        finally:
            await client.close()

    run_async(do_login())


@app.command()
def logout():
    """Delete stored credentials."""
    session_file = get_session_path().with_suffix(".session")
    if session_file.exists():
        session_file.unlink()
        console.print("[green]Logged out successfully[/green]")
    else:
        console.print("[yellow]No active session[/yellow]")


@app.command()
def whoami():
    """Show stored credentials."""
    data = load_stored_session()
    if data is None:
        console.print("[red]Not logged in. Run 'chunkdrop login' first.[/red]")
        raise typer.Exit(1)

    console.print(f"Server: {data.base_url}")
    console.print(f"Token: {mask(data.token)}")
    console.print(f"Auth code: {mask(data.auth_code)}")
    console.print(f"Channel: {data.upload_channel or 'default'}")
    console.print(f"Session: {get_session_path().with_suffix('.session')}")


@app.command()
def plan(
    paths: List[Path] = typer.Argument(..., help="Files or folders to inspect", exists=True),
):
    """Show how each file would be sent, without uploading."""
    from chunkdrop import ChunkDropClient
    from chunkdrop.core.exceptions import ValidationError
    from chunkdrop.core.utils import format_size

    async def do_plan():
        client = ChunkDropClient()
        entries = await client.scan(paths)

        table = Table()
        table.add_column("Path")
        table.add_column("Size", justify="right")
        table.add_column("Strategy", style="cyan")
        table.add_column("Chunks", justify="right")

        rejected = 0
        for entry in sorted(entries, key=lambda e: e.size):
            try:
                entry_plan = client.plan(entry)
            except ValidationError as e:
                rejected += 1
                table.add_row(entry.path, format_size(entry.size), "[red]rejected[/red]", str(e))
                continue
            chunks = str(entry_plan.chunk_count) if entry_plan.strategy.value == "chunked" else "-"
            table.add_row(entry.path, format_size(entry.size), entry_plan.strategy.value, chunks)

        console.print(table)
        console.print(f"{len(entries)} files, {format_size(sum(e.size for e in entries))}")
        if rejected:
            raise typer.Exit(1)

    run_async(do_plan())


@app.command()
def upload(
    paths: List[Path] = typer.Argument(..., help="Files or folders to upload", exists=True),
    folder: str = typer.Option(None, "--folder", "-f", help="Base folder on the server"),
    server: str = typer.Option(None, "--server", "-s", help="Upload server URL (overrides stored)"),
    channel: str = typer.Option(None, "--channel", "-c", help="Upload channel"),
    auth_code: str = typer.Option(None, "--auth-code", "-a", help="Upload auth code"),
    insecure: bool = typer.Option(False, "--insecure", "-k", help="Skip TLS verification"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Upload files and folders, keeping their relative paths."""
    from chunkdrop import ChunkDropClient, setup_logging

    if verbose:
        logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s %(message)s")
        setup_logging(logging.DEBUG)

    stored = load_stored_session()
    base_url = server or (stored.base_url if stored else None)
    if not base_url:
        console.print("[red]No server configured. Run 'chunkdrop login' or pass --server.[/red]")
        raise typer.Exit(1)

    async def do_upload():
        config = ChunkDropClient.create_config(base_url, verify_ssl=not insecure)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console
        ) as progress:
            observer = RichProgressObserver(progress)
            async with ChunkDropClient(str(get_session_path()), config=config, observer=observer) as client:
                overrides = {"upload_folder": folder, "auth_code": auth_code}
                if channel:
                    overrides["upload_channel"] = channel
                options = client.default_options(**overrides)
                try:
                    entries = await client.scan(paths)
                except OSError as e:
                    console.print(f"[red]Cannot read {e.filename or e}: {e.strerror or e}[/red]")
                    raise typer.Exit(1)
                if not entries:
                    console.print("[yellow]Nothing to upload[/yellow]")
                    return None
                return await client.upload_entries(entries, options)

    summary = run_async(do_upload())
    if summary is None:
        return
    print_summary(summary)
    if summary.fail_count:
        raise typer.Exit(1)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
