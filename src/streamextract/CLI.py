"""streamextract CLI entrypoint.

This module provides the `cli` click group:

- ``extract`` downloads (or opens) an archive and extracts it while it
  streams in, displaying progress.
- ``asset`` prints the release asset naming for the running system.
- ``run`` spawns a command and prints its output line by line.

Usage example (from shell):
    streamextract extract https://example.com/coder-cli-linux-amd64.tar.gz -o bin/
    streamextract run -- make build

Archive handling is delegated to `streamextract.ArchiveEngine.extract`, so
this module only deals with user interaction, progress reporting and
opening the byte stream. Set ``CODER_DEBUG=1`` to see debug output.
"""

from pathlib import Path

import click
import httpx
from rich.progress import BarColumn, DownloadColumn, Progress, SpinnerColumn, TextColumn, TransferSpeedColumn

from .ArchiveEngine import EXTRACTORS, extract as extract_stream, format_for_name
from .Errors import CommandError
from .FileIO import ByteStream
from .Output import console, debug
from .Process import spawn
from .Target import get_asset_url, get_target

HTTP_TIMEOUT = httpx.Timeout(10.0, read=300.0)


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def _extract_with_progress(stream: ByteStream, output: Path, fmt: str | None, total: int | None) -> Path:
    with _progress() as progress:
        task = progress.add_task("Extracting...", total=total)
        # Advance on every chunk pulled from the source, compressed size.
        stream.on("data", lambda chunk: progress.update(task, advance=len(chunk)))
        return extract_stream(stream, output, fmt, log=debug)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
def cli():
    """Extract streamed archives and stream process output."""


@cli.command()
@click.argument("source", type=str)
@click.option("--output", "-o",
              type=click.Path(file_okay=False, dir_okay=True, writable=True, path_type=Path),
              default=Path("extracted"),
              help="Output directory for extracted files")
@click.option("--format", "-f", "fmt", type=click.Choice(sorted(EXTRACTORS)), default=None,
              help="Archive format; guessed from the name or the content when omitted")
def extract(source: str, output: Path, fmt: str | None):
    """Extract a tar.gz or zip archive from a URL or a local file.

    Args:

        source: An http(s) URL, streamed while it downloads, or a local path.

        output: Directory where the archive is extracted. Created if missing.

        fmt: "tar.gz" or "zip". Falls back to the extension of SOURCE, then
        to the magic bytes of the archive.

    Raises:

        Exception: Any error encountered while downloading or extracting is
        printed to the console and propagated.
    """
    fmt = fmt or format_for_name(source)
    try:
        if _is_url(source):
            debug(f"Downloading {source}")
            with httpx.stream("GET", source, follow_redirects=True, timeout=HTTP_TIMEOUT) as response:
                response.raise_for_status()
                length = response.headers.get("Content-Length")
                stream = ByteStream.from_response(response)
                _extract_with_progress(stream, output, fmt, int(length) if length else None)
        else:
            path = Path(source)
            with path.open("rb") as fileobj:
                stream = ByteStream.from_file(fileobj)
                _extract_with_progress(stream, output, fmt, path.stat().st_size)

        console.print(f"Extracted to {output}")
    except Exception as e:
        # Surface the error to the user and re-raise for callers / tests to handle.
        console.print(f"[red]Error:[/red] {str(e)}")
        raise e


@cli.command()
@click.argument("version", type=str, default="latest")
def asset(version: str):
    """Print the release target and asset URL for this system."""
    click.echo(get_target())
    click.echo(get_asset_url(version))


@cli.command(context_settings=dict(ignore_unknown_options=True))
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
def run(command: tuple[str, ...]):
    """Run COMMAND and print its output as it is produced."""
    try:
        spawn(list(command), on_output=click.echo)
    except CommandError as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise SystemExit(e.returncode if e.returncode is not None else 127)
