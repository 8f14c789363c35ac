from __future__ import annotations

import logging
import shutil
from pathlib import Path

import typer

from upload_cache import CacheConfig, Uploader, UploadError, generate, load_config
from upload_cache.sanitized_file import SanitizedFile

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = typer.Typer(help="Upload cache CLI")
debug_app = typer.Typer(help="Debug commands")
app.add_typer(debug_app, name="debug")


@app.command("cache")
def cache_file(
    source: Path = typer.Argument(
        ...,
        help="File to place in the upload cache.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file path (JSON or YAML).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Override the configured cache root.",
    ),
) -> None:
    """Cache a local file and print its cache name."""
    uploader = Uploader(_load_cache_config(config_path, root))
    try:
        # Opened as a stream so the multipart-only policy still applies to bare paths.
        with source.open("rb") as handle:
            uploader.cache(handle)
    except (UploadError, OSError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    if uploader.cache_name is None:
        typer.echo(f"nothing cached: {source} is empty", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"cache_name={uploader.cache_name}")
    typer.echo(f"path={uploader.file.path if uploader.file else '-'}")


@app.command("retrieve")
def retrieve_file(
    cache_name: str = typer.Argument(..., help="Cache name in <identifier>/<filename> form."),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file path (JSON or YAML).",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    root: Path | None = typer.Option(
        None,
        "--root",
        help="Override the configured cache root.",
    ),
    out: Path | None = typer.Option(
        None,
        "--out",
        help="Optional path to copy the retrieved file to.",
    ),
) -> None:
    """Retrieve a cached file by cache name."""
    uploader = Uploader(_load_cache_config(config_path, root))
    try:
        cached = uploader.retrieve_from_cache(cache_name)
    except (UploadError, OSError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"path={cached.path}")
    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(cached.path, out)
        typer.echo(f"out={out}")


@app.command("generate-id")
def generate_id() -> None:
    """Print a fresh cache identifier."""
    typer.echo(str(generate()))


@debug_app.command("storage")
def debug_storage(
    root: Path = typer.Option(
        Path("data/debug-cache"),
        "--root",
        help="Cache root used for the smoke test.",
    ),
) -> None:
    """Run a cache -> retrieve smoke test."""
    payload = b"upload cache smoke payload"
    writer = Uploader(CacheConfig(root=str(root)))
    reader = Uploader(CacheConfig(root=str(root)))
    try:
        writer.cache(SanitizedFile(payload, filename="smoke.txt"))
        reader.retrieve_from_cache(writer.cache_name)
    except (UploadError, OSError) as exc:
        logging.exception("storage smoke failed name=%s", writer.cache_name)
        typer.echo("storage smoke test failed", err=True)
        raise typer.Exit(code=1) from exc

    if reader.read() != payload or reader.original_filename != "smoke.txt":
        typer.echo("storage smoke test failed", err=True)
        raise typer.Exit(code=1)

    typer.echo("storage ok")


def _load_cache_config(config_path: Path | None, root: Path | None) -> CacheConfig:
    try:
        config = load_config(config_path) if config_path is not None else CacheConfig()
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    if root is not None:
        config = config.model_copy(update={"root": str(root)})
    return config


def main() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
