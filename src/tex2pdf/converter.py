"""Compile a TeX document into PDF with a LaTeX engine."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import tempfile
from pathlib import Path

from tex2pdf.config import DEFAULT_ENGINE, FALLBACK_ENGINE, LatexEngine, Tex2PdfConfig
from tex2pdf.errors import ConversionError, EngineNotFoundError, InputNotFoundError
from tex2pdf.locator import engine_executable_path
from tex2pdf.models import ConversionRequest

logger = logging.getLogger(__name__)

JOB_NAME = "texput"

_FONT_FAILURE_RE = re.compile(r"Font|fontspec")
_OUTPUT_TAIL_LINES = 20


def _log_excerpt(log_path: Path, fallback_output: str) -> str:
    """Return the ``! ...`` error lines of a LaTeX log with a little context."""

    if log_path.is_file():
        lines = log_path.read_text(encoding="utf-8", errors="replace").splitlines()
        excerpt: list[str] = []
        for index, line in enumerate(lines):
            if line.startswith("! "):
                excerpt.extend(lines[index : index + 3])
        if excerpt:
            return "\n".join(excerpt)

    tail = fallback_output.strip().splitlines()[-_OUTPUT_TAIL_LINES:]
    return "\n".join(tail)


def _texinputs(input_dir: Path) -> str:
    # Trailing separator keeps the distribution's default search path.
    existing = os.environ.get("TEXINPUTS", "")
    return f"{input_dir}{os.pathsep}{existing}"


def run_engine(executable: Path, engine: LatexEngine, request: ConversionRequest) -> None:
    """Run one engine pass and stream the PDF into ``request.output_path``."""

    input_dir = request.input_path.resolve().parent

    with tempfile.TemporaryDirectory(prefix="tex2pdf-") as tmp:
        workdir = Path(tmp)
        tex_path = workdir / f"{JOB_NAME}.tex"
        with request.input_path.open("rb") as source, tex_path.open("wb") as target:
            shutil.copyfileobj(source, target)

        env = dict(os.environ, TEXINPUTS=_texinputs(input_dir))
        command = [str(executable), "-interaction=nonstopmode", "-halt-on-error", tex_path.name]
        logger.debug("Running %s in %s", command, workdir)
        try:
            process = subprocess.run(
                command,
                cwd=workdir,
                env=env,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise ConversionError(f"Failed to start {engine.value}: {exc}", engine=engine.value) from exc

        if process.returncode != 0:
            excerpt = _log_excerpt(workdir / f"{JOB_NAME}.log", process.stdout + process.stderr)
            raise ConversionError(
                f"Command failed: {engine.value} exited with status {process.returncode}\n{excerpt}",
                engine=engine.value,
                log_excerpt=excerpt,
                compile_error=True,
            )

        generated_pdf = workdir / f"{JOB_NAME}.pdf"
        if not generated_pdf.exists():
            raise ConversionError(
                f"Command failed: {engine.value} produced no PDF",
                engine=engine.value,
                log_excerpt=process.stdout.strip(),
                compile_error=True,
            )

        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        with generated_pdf.open("rb") as source, request.output_path.open("wb") as target:
            shutil.copyfileobj(source, target)


def _convert_once(request: ConversionRequest, engine: LatexEngine, config: Tex2PdfConfig) -> None:
    if not request.input_path.is_file():
        raise InputNotFoundError(f"File not found: {request.input_path}")

    executable = engine_executable_path(engine, config)
    if executable is None:
        raise EngineNotFoundError(f'LaTeX engine "{engine.value}" not found')

    logger.info("Converting %s with %s...", request.input_path.name, engine.value)
    run_engine(executable, engine, request)


def is_font_failure(error: ConversionError) -> bool:
    return bool(_FONT_FAILURE_RE.search(str(error)))


def convert(request: ConversionRequest, config: Tex2PdfConfig) -> LatexEngine:
    """Convert ``request`` and return the engine that produced the PDF.

    A font failure with the default engine is retried once with the
    fallback engine.
    """

    try:
        _convert_once(request, request.engine, config)
    except ConversionError as exc:
        if request.engine != DEFAULT_ENGINE or not is_font_failure(exc):
            raise
        logger.info(
            "%s failed (font issue), trying %s...", DEFAULT_ENGINE.value, FALLBACK_ENGINE.value
        )
        _convert_once(request, FALLBACK_ENGINE, config)
        return FALLBACK_ENGINE

    return request.engine
