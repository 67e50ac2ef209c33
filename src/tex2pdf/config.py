"""Configuration models and enums for tex2pdf."""

from __future__ import annotations

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, Field

_TINYTEX_RELEASES = "https://github.com/rstudio/tinytex-releases/releases/download/daily"

DEFAULT_INSTALL_ROOT = Path(__file__).resolve().parent / ".tinytex"
COMPLETION_MARKER = ".tex2pdf-complete"

HOME_ENV_VAR = "TEX2PDF_HOME"
POSTINSTALL_ENV_VAR = "TEX2PDF_POSTINSTALL"


class LatexEngine(str, Enum):
    PDFLATEX = "pdflatex"
    XELATEX = "xelatex"
    LUALATEX = "lualatex"
    LATEX = "latex"


DEFAULT_ENGINE = LatexEngine.PDFLATEX
FALLBACK_ENGINE = LatexEngine.XELATEX


def is_windows(platform: str) -> bool:
    return platform.startswith("win")


def vendored_bin_subdir(platform: str) -> str:
    """Return the TinyTeX bin subdirectory name for a ``sys.platform`` value."""

    if is_windows(platform):
        return "windows"
    if platform == "darwin":
        return "universal-darwin"
    return "x86_64-linux"


def executable_name(name: str, platform: str) -> str:
    return f"{name}.exe" if is_windows(platform) else name


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


class Tex2PdfConfig(BaseModel):
    """Where the vendored distribution lives and how it is fetched."""

    install_root: Path = DEFAULT_INSTALL_ROOT
    platform: str = Field(default_factory=lambda: sys.platform)
    unix_archive_url: str = f"{_TINYTEX_RELEASES}/TinyTeX.tar.gz"
    darwin_archive_url: str = f"{_TINYTEX_RELEASES}/TinyTeX.tgz"
    windows_archive_url: str = f"{_TINYTEX_RELEASES}/TinyTeX.zip"
    max_redirects: int = Field(default=10, ge=0)
    download_timeout: float = Field(default=60.0, gt=0)
    lock_timeout: float = Field(default=600.0, gt=0)
    automatic: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> "Tex2PdfConfig":
        env = os.environ if environ is None else environ
        values: dict = {"automatic": _env_flag(env.get(POSTINSTALL_ENV_VAR))}
        home = env.get(HOME_ENV_VAR)
        if home:
            values["install_root"] = Path(home).expanduser()
        values.update(overrides)
        return cls(**values)

    @property
    def windows(self) -> bool:
        return is_windows(self.platform)

    @property
    def bin_dir(self) -> Path:
        return self.install_root / "bin" / vendored_bin_subdir(self.platform)

    @property
    def marker_path(self) -> Path:
        return self.install_root / COMPLETION_MARKER

    @property
    def lock_path(self) -> Path:
        return self.install_root.with_name(f"{self.install_root.name}.lock")

    @property
    def archive_url(self) -> str:
        if self.windows:
            return self.windows_archive_url
        if self.platform == "darwin":
            return self.darwin_archive_url
        return self.unix_archive_url

    def executable(self, name: str) -> str:
        return executable_name(name, self.platform)
