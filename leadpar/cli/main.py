from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import typer

from leadpar.cli.common import build_extraction, resolve_config
from leadpar.core.models import ExtractOptions
from leadpar.infra.logging import init_logging
from leadpar.scrape.http_client import HttpClient
from leadpar.scrape.paragraph import first_paragraph
from leadpar.services.excerpts import collect_batch
from leadpar.services.reply import ConsoleReplySink, TruncateMode, fit_reply
from leadpar.text.entities import EntityDecoder

app = typer.Typer(help="LeadPar CLI: first paragraphs of web pages, one line each")


@app.callback()
def _setup(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="TRACE, DEBUG, INFO, WARN, ERROR"),
) -> None:
    init_logging(force=True, level=log_level)


@app.command("first-par")
def first_par(
    urls: List[str] = typer.Argument(..., help="Pages to fetch, in order"),
    count: Optional[int] = typer.Option(None, "--count", "-n", min=0, help="URLs to attempt"),
    min_spaces: Optional[int] = typer.Option(None, "--min-spaces"),
    strip: Optional[str] = typer.Option(None, "--strip", help="Prefix to drop from each excerpt"),
    strip_regex: Optional[bool] = typer.Option(None, "--strip-regex/--strip-literal"),
    truncate: Optional[TruncateMode] = typer.Option(None, "--truncate", case_sensitive=False),
    max_length: Optional[int] = typer.Option(None, "--max-length", min=8),
    decoder: Optional[str] = typer.Option(None, "--decoder", help="reference or builtin"),
    as_json: bool = typer.Option(False, "--json", help="Print the batch result as JSON instead"),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, readable=True),
) -> None:
    """Fetch each URL and reply with its first paragraph as ``[n] text``."""
    conf = resolve_config(
        config,
        {
            "count": count,
            "min_spaces": min_spaces,
            "strip": strip,
            "strip_regex": strip_regex,
            "truncate": truncate.value if truncate else None,
            "reply_max_length": max_length,
            "entity_decoder": decoder,
        },
    )
    options, _, render = build_extraction(conf)
    sink = None if as_json else ConsoleReplySink(max_length=conf.reply_max_length)
    queue = list(urls)
    with HttpClient.from_config(conf) as client:
        result = collect_batch(
            queue,
            conf.count,
            options,
            fetch=client.get,
            reply_sink=sink,
            truncate=TruncateMode(conf.truncate),
            render=render,
        )
    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif result.success == 0:
        typer.secho("No paragraph found", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)


@app.command()
def extract(
    source: Optional[Path] = typer.Argument(None, exists=True, dir_okay=False, readable=True),
    min_spaces: Optional[int] = typer.Option(None, "--min-spaces"),
    strip: Optional[str] = typer.Option(None, "--strip"),
    strip_regex: Optional[bool] = typer.Option(None, "--strip-regex/--strip-literal"),
    decoder: Optional[str] = typer.Option(None, "--decoder"),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, readable=True),
) -> None:
    """Print the first paragraph of a local HTML file (or stdin)."""
    conf = resolve_config(
        config,
        {"min_spaces": min_spaces, "strip": strip, "strip_regex": strip_regex, "entity_decoder": decoder},
    )
    options, _, render = build_extraction(conf)
    document = source.read_text(encoding="utf-8", errors="replace") if source else sys.stdin.read()
    par = first_paragraph(document, options, render=render)
    if not par:
        typer.secho("No paragraph found", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)
    for line in fit_reply(par, TruncateMode(conf.truncate), conf.reply_max_length):
        typer.echo(line)


@app.command()
def decode(
    text: str = typer.Argument(..., help="Text containing HTML character references"),
    decoder: Optional[str] = typer.Option(None, "--decoder"),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, readable=True),
) -> None:
    """Decode HTML character references in TEXT."""
    conf = resolve_config(config, {"entity_decoder": decoder})
    typer.echo(EntityDecoder.from_config(conf).decode(text))


@app.command()
def doctor(
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, readable=True),
) -> None:
    """Show the resolved configuration and check the renderer on a sample page."""
    conf = resolve_config(config, {})
    for key, value in sorted(asdict(conf).items()):
        typer.echo(f"{key}: {value}")

    _, _, render = build_extraction(conf)
    # the configured strip prefix would not match the sample page
    options = ExtractOptions(min_spaces=conf.min_spaces)
    sample = (
        "<html><body><h1>LeadPar</h1>"
        "<p>LeadPar &amp; friends pick the first real paragraph of a page for you.</p>"
        "</body></html>"
    )
    par = first_paragraph(sample, options, render=render)
    if par.startswith("LeadPar & friends"):
        typer.secho("Extraction check passed", fg=typer.colors.GREEN)
    else:
        typer.secho(f"Extraction check failed: {par!r}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def main() -> None:  # console_scripts entrypoint wrapper
    app()


if __name__ == "__main__":
    main()
