"""Locate a usable LaTeX installation on the host."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from tex2pdf.config import LatexEngine, Tex2PdfConfig
from tex2pdf.models import EngineLocation, EngineOrigin

logger = logging.getLogger(__name__)

PROBE_ENGINE = LatexEngine.PDFLATEX


def find_system_latex() -> Path | None:
    """Return the directory of a ``pdflatex`` found on PATH, if any."""

    try:
        found = shutil.which(PROBE_ENGINE.value)
    except OSError as exc:
        logger.debug("PATH lookup for %s failed: %s", PROBE_ENGINE.value, exc)
        return None
    if not found:
        return None
    return Path(found).parent


def vendored_installed(config: Tex2PdfConfig, engine: str = PROBE_ENGINE.value) -> bool:
    """Return True when the vendored install finished and exposes ``engine``."""

    if not config.marker_path.is_file():
        return False
    return (config.bin_dir / config.executable(engine)).exists()


def find_vendored_latex(config: Tex2PdfConfig) -> Path | None:
    if vendored_installed(config):
        return config.bin_dir
    return None


def resolve(config: Tex2PdfConfig) -> EngineLocation | None:
    """Prefer a system LaTeX, then the vendored one."""

    system_dir = find_system_latex()
    if system_dir is not None:
        return EngineLocation(base_path=system_dir, origin=EngineOrigin.SYSTEM)

    vendored_dir = find_vendored_latex(config)
    if vendored_dir is not None:
        return EngineLocation(base_path=vendored_dir, origin=EngineOrigin.VENDORED)

    return None


def has_latex(config: Tex2PdfConfig) -> bool:
    return resolve(config) is not None


def engine_executable_path(engine: LatexEngine | str, config: Tex2PdfConfig) -> Path | None:
    """Return the full path of ``engine`` inside the resolved installation."""

    location = resolve(config)
    if location is None:
        return None
    name = engine.value if isinstance(engine, LatexEngine) else engine
    return location.base_path / config.executable(name)
