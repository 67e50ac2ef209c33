"""Domain models used by tex2pdf."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tex2pdf.config import DEFAULT_ENGINE, LatexEngine


class EngineOrigin(str, Enum):
    SYSTEM = "system"
    VENDORED = "vendored"


class EngineLocation(BaseModel):
    """Directory holding the engine binaries and where it came from."""

    model_config = ConfigDict(frozen=True)

    base_path: Path
    origin: EngineOrigin


class InstallResult(BaseModel):
    """Outcome of a provisioning attempt."""

    success: bool
    installed_path: Path | None = None
    skipped: bool = False
    error: str | None = None


class RepairReport(BaseModel):
    """What an alias repair pass changed in the vendored bin directory."""

    bin_exists: bool
    removed: list[str] = Field(default_factory=list)
    created: list[str] = Field(default_factory=list)
    unresolved: list[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.created)


class ConversionRequest(BaseModel):
    """A single TeX to PDF conversion."""

    input_path: Path
    output_path: Path
    engine: LatexEngine = DEFAULT_ENGINE

    @classmethod
    def from_args(
        cls,
        input_path: Path,
        output_path: Path | None = None,
        engine: LatexEngine = DEFAULT_ENGINE,
    ) -> "ConversionRequest":
        if output_path is None:
            output_path = default_output_path(input_path)
        return cls(input_path=input_path, output_path=output_path, engine=engine)


def default_output_path(input_path: Path) -> Path:
    """Return the input path with its extension replaced by ``.pdf``."""

    return input_path.parent / f"{input_path.stem}.pdf"
