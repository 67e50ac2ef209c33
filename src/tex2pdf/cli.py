"""Typer CLI entrypoints for tex2pdf."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from tex2pdf.config import DEFAULT_ENGINE, LatexEngine, Tex2PdfConfig
from tex2pdf.converter import convert
from tex2pdf.errors import ConversionError, EngineNotFoundError, InputNotFoundError
from tex2pdf.models import ConversionRequest
from tex2pdf.provisioner import Provisioner, ensure_latex, manual_install_hints

_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

app = typer.Typer(
    help=(
        "Convert TeX files to PDF with zero setup. "
        "LaTeX (TinyTeX) is installed on first use if not present."
    ),
    add_completion=False,
    context_settings=_CONTEXT_SETTINGS,
)

install_app = typer.Typer(
    help="Install the vendored TinyTeX distribution used by tex2pdf.",
    add_completion=False,
    context_settings=_CONTEXT_SETTINGS,
)

_EPILOG = (
    "Examples: tex2pdf document.tex | tex2pdf document.tex output.pdf | "
    "tex2pdf document.tex --engine=xelatex. "
    "First run may take a few minutes to download LaTeX (~200MB)."
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[tex2pdf] %(message)s",
    )


def _echo_manual_install(config: Tex2PdfConfig) -> None:
    typer.echo("You can install LaTeX manually from:", err=True)
    for hint in manual_install_hints(config.platform):
        typer.echo(f"  - {hint}", err=True)


@app.command(epilog=_EPILOG, context_settings=_CONTEXT_SETTINGS)
def main(
    ctx: typer.Context,
    input_path: Path | None = typer.Argument(
        None, metavar="INPUT.tex", dir_okay=False, help="Path to your TeX file.", show_default=False
    ),
    output_path: Path | None = typer.Argument(
        None,
        metavar="[OUTPUT.pdf]",
        dir_okay=False,
        help="Output PDF path (defaults to the input name with .pdf).",
        show_default=False,
    ),
    engine: LatexEngine = typer.Option(DEFAULT_ENGINE, "--engine", help="LaTeX engine to run."),
    install: bool = typer.Option(
        False, "--install", help="Install LaTeX (TinyTeX) unless one is already available."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output."),
) -> None:
    """Convert INPUT.tex into a PDF."""

    if install:
        _configure_logging(verbose)
        config = Tex2PdfConfig.from_env()
        typer.echo("Installing LaTeX...")
        Provisioner(config).ensure_installed()
        raise typer.Exit(code=0)

    if input_path is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    _configure_logging(verbose)
    config = Tex2PdfConfig.from_env()
    request = ConversionRequest.from_args(input_path, output_path, engine)

    if not request.input_path.is_file():
        typer.echo(f"Error: File not found: {request.input_path}", err=True)
        raise typer.Exit(code=1)

    if not ensure_latex(config):
        typer.echo("Failed to install LaTeX automatically.", err=True)
        _echo_manual_install(config)
        raise typer.Exit(code=1)

    try:
        used = convert(request, config)
    except (InputNotFoundError, EngineNotFoundError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except ConversionError as exc:
        if exc.engine != request.engine.value:
            typer.echo("Conversion failed with both engines:", err=True)
        else:
            typer.echo("Conversion failed:", err=True)
        typer.echo(str(exc), err=True)
        if exc.compile_error:
            typer.echo("Tip: Your TeX file may have errors or missing packages.", err=True)
            typer.echo("  Check the file compiles with a LaTeX editor first.", err=True)
        raise typer.Exit(code=1) from exc

    if used != request.engine:
        typer.echo(f"Compiled with {used.value} instead of {request.engine.value}.")
    typer.echo(f"Created: {request.output_path}")


@install_app.command(context_settings=_CONTEXT_SETTINGS)
def install_main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output."),
) -> None:
    """Install TinyTeX unless a usable LaTeX is already present."""

    _configure_logging(verbose)
    config = Tex2PdfConfig.from_env()
    result = Provisioner(config).ensure_installed()
    if result.success:
        raise typer.Exit(code=0)

    typer.echo("Failed to install TinyTeX automatically.", err=True)
    typer.echo("LaTeX will be installed on first use of the tex2pdf command.", err=True)
    _echo_manual_install(config)
    if config.automatic:
        typer.echo("Note: This is non-fatal. Package installation will continue.", err=True)
        raise typer.Exit(code=0)
    raise typer.Exit(code=1)
