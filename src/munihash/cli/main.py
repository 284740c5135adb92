"""Typer CLI entrypoint and command definitions for munihash."""

import signal
import threading
from pathlib import Path
from typing import Optional

import typer

from munihash.core.errors import MunihashError

app = typer.Typer()


def _build_config(config: Optional[str], **overrides: object) -> "RunConfig":
    from munihash.core.config import RunConfig, load_run_config

    cfg = load_run_config(Path(config)) if config else RunConfig()
    return cfg.with_overrides(**overrides)


def _fail(exc: MunihashError) -> None:
    typer.echo(f"Error: {exc.describe()}", err=True)
    raise typer.Exit(code=1)


# -- run ----------------------------------------------------------------------


@app.command("run")
def run_cmd(
    url: Optional[str] = typer.Option(None, "--url", help="Dataset URL (defaults to the Receita Federal table)"),
    input_file: Optional[str] = typer.Option(None, "--input", help="Read the dataset from a local file instead of the URL"),
    out_dir: Optional[str] = typer.Option(None, "--out-dir", help="Output directory for per-group files"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to a YAML run config"),
    iterations: Optional[int] = typer.Option(None, "--iterations", help="PBKDF2 iteration count"),
    hash_bytes: Optional[int] = typer.Option(None, "--hash-bytes", help="Digest length in bytes"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Worker pool size (default: CPU count)"),
    executor: Optional[str] = typer.Option(None, "--executor", help="Worker pool kind: thread or process"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Hash every record of the dataset and write one CSV/JSON pair per group."""
    from munihash.adapters.receita.client import load_dataset_text
    from munihash.adapters.receita.parser import parse_records
    from munihash.core.defaults import SUMMARY_FILENAME
    from munihash.core.logging import configure_logging
    from munihash.core.time import format_elapsed
    from munihash.core.types import Batch
    from munihash.engine.engine import HashingEngine
    from munihash.pipeline.partition import group_keys
    from munihash.pipeline.runner import run_pipeline
    from munihash.report.export import write_run_summary
    from munihash.report.summary import GroupSummary

    configure_logging(verbose)
    cancel = threading.Event()

    def _on_progress(event: str, batch: Batch, group_summary: Optional[GroupSummary]) -> None:
        if event == "start":
            typer.echo(f"Group {batch.group}: {len(batch)} records")
        else:
            typer.echo(f"Group {batch.group} done in {format_elapsed(group_summary.elapsed_seconds)}")

    on_main_thread = threading.current_thread() is threading.main_thread()
    previous_handler = signal.getsignal(signal.SIGINT)
    try:
        cfg = _build_config(
            config,
            source_url=url,
            out_dir=out_dir,
            iterations=iterations,
            output_length=hash_bytes,
            max_workers=workers,
            executor=executor,
        )
        engine = HashingEngine(cfg.kdf_params(), max_workers=cfg.max_workers, executor=cfg.executor)

        if input_file:
            typer.echo(f"Reading dataset from {input_file}...")
        else:
            typer.echo(f"Downloading dataset from {cfg.source_url}...")
        text = load_dataset_text(
            url=cfg.source_url,
            path=Path(input_file) if input_file else None,
            timeout=cfg.fetch_timeout_seconds,
        )

        typer.echo("Parsing dataset...")
        parsed = parse_records(text)
        if parsed.dropped_rows:
            typer.echo(f"Dropped {parsed.dropped_rows} malformed row(s)")

        out = Path(cfg.out_dir)
        typer.echo(f"Groups found: {len(group_keys(parsed.records))}")
        typer.echo(f"Output directory: {out}")
        typer.echo("")

        if on_main_thread:
            signal.signal(signal.SIGINT, lambda *_: cancel.set())
        summary = run_pipeline(
            parsed.records,
            engine=engine,
            out_dir=out,
            dropped_rows=parsed.dropped_rows,
            on_progress=_on_progress,
            cancel=cancel,
        )
        summary_path = write_run_summary(summary, out / SUMMARY_FILENAME)
    except MunihashError as exc:
        _fail(exc)
    finally:
        if on_main_thread:
            signal.signal(signal.SIGINT, previous_handler)

    typer.echo("")
    typer.echo("===== SUMMARY =====")
    typer.echo(f"Groups written: {len(summary.groups)}")
    typer.echo(f"Records hashed: {summary.total_records}")
    typer.echo(f"Output directory: {out}")
    typer.echo(f"Summary: {summary_path}")
    typer.echo(f"Total time: {format_elapsed(summary.total_elapsed_seconds)}")


# -- verify -------------------------------------------------------------------


@app.command("verify")
def verify_cmd(
    csv_file: str = typer.Option(..., "--csv", help="Path to a municipios_hash_<GROUP>.csv file"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to the YAML run config used for the run"),
    iterations: Optional[int] = typer.Option(None, "--iterations", help="PBKDF2 iteration count"),
    hash_bytes: Optional[int] = typer.Option(None, "--hash-bytes", help="Digest length in bytes"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Worker pool size (default: CPU count)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Re-derive every digest in an output CSV and report mismatches."""
    from munihash.core.logging import configure_logging
    from munihash.engine.engine import HashingEngine
    from munihash.report.verify import verify_group_csv

    configure_logging(verbose)
    csv_path = Path(csv_file)
    if not csv_path.exists():
        typer.echo(f"File not found: {csv_path}", err=True)
        raise typer.Exit(code=1)

    try:
        cfg = _build_config(config, iterations=iterations, output_length=hash_bytes, max_workers=workers)
        engine = HashingEngine(cfg.kdf_params(), max_workers=cfg.max_workers, executor=cfg.executor)
        report = verify_group_csv(csv_path, engine)
    except MunihashError as exc:
        _fail(exc)
    except ValueError as exc:
        typer.echo(f"Error: {csv_path} is not a valid output file: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Checked {report.checked} record(s) in {csv_path}")
    if not report.ok:
        typer.echo(f"{len(report.mismatched)} mismatch(es): {', '.join(report.mismatched)}", err=True)
        raise typer.Exit(code=1)
    typer.echo("All digests match")


# -- config -------------------------------------------------------------------
config_app = typer.Typer()
app.add_typer(config_app, name="config")


@config_app.command("init")
def config_init_cmd(
    out: str = typer.Option("munihash.yaml", "--out", help="Where to write the default config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a YAML config file populated with the defaults."""
    from munihash.core.config import RunConfig, save_run_config

    path = Path(out)
    if path.exists() and not force:
        typer.echo(f"{path} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=1)
    save_run_config(RunConfig(), path)
    typer.echo(f"Wrote config to {path}")


if __name__ == "__main__":
    app()
