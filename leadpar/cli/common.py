from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import typer

from leadpar.core.config import AppConfig, ConfigError, load_app_config
from leadpar.core.models import ExtractOptions
from leadpar.text.entities import EntityDecoder
from leadpar.text.render import Renderer, make_renderer


def resolve_config(config: Optional[Path], overrides: Dict[str, Any]) -> AppConfig:
    """Load file/env/CLI layers; a bad config ends the command with exit code 2."""
    try:
        return load_app_config(config, overrides)
    except ConfigError as e:
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)


def build_extraction(conf: AppConfig) -> Tuple[ExtractOptions, EntityDecoder, Renderer]:
    """Options, decoder and renderer for one CLI invocation."""
    decoder = EntityDecoder.from_config(conf)
    return ExtractOptions.from_config(conf), decoder, make_renderer(decoder)
