from pathlib import Path

import pytest

from tex2pdf.config import LatexEngine, Tex2PdfConfig
from tex2pdf.converter import convert, is_font_failure
from tex2pdf.errors import ConversionError, EngineNotFoundError, InputNotFoundError
from tex2pdf.models import ConversionRequest, default_output_path

from helpers import mark_installed, posix_only, write_script

pytestmark = posix_only

SUCCEED = 'printf "%%PDF-1.4 {engine} $TEXINPUTS" > texput.pdf\n'
FONT_FAILURE = (
    "printf '! Font T1/cmr/m/n/10=ecrm1000 at 10.0pt not loadable: Metric (TFM) file not found.\\n"
    "l.3 \\\\begin{{document}}\\n' > texput.log\n"
    "touch {calls}\n"
    "exit 1\n"
)
SYNTAX_FAILURE = "printf '! Undefined control sequence.\\nl.4 \\\\foo\\n' > texput.log\nexit 1\n"


@pytest.fixture
def vendored(no_system_latex, config: Tex2PdfConfig) -> Tex2PdfConfig:
    mark_installed(config)
    write_script(config.bin_dir / "pdflatex", "exit 99\n")
    return config


@pytest.fixture
def document(tmp_path: Path) -> Path:
    source = tmp_path / "docs" / "paper.tex"
    source.parent.mkdir(parents=True)
    source.write_text("\\documentclass{article}\\begin{document}Hi\\end{document}\n", encoding="utf-8")
    return source


def _engine(config: Tex2PdfConfig, name: str, body: str) -> Path:
    return write_script(config.bin_dir / name, body)


def test_convert_writes_pdf_next_to_input(vendored: Tex2PdfConfig, document: Path) -> None:
    _engine(vendored, "pdflatex", SUCCEED.format(engine="pdflatex"))
    request = ConversionRequest.from_args(document)

    used = convert(request, vendored)

    assert used == LatexEngine.PDFLATEX
    assert request.output_path == document.parent / "paper.pdf"
    content = request.output_path.read_text(encoding="utf-8")
    assert content.startswith("%PDF-1.4 pdflatex")
    assert str(document.parent) in content


def test_convert_creates_output_directory(vendored: Tex2PdfConfig, document: Path, tmp_path: Path) -> None:
    _engine(vendored, "lualatex", SUCCEED.format(engine="lualatex"))
    output = tmp_path / "build" / "out.pdf"

    convert(ConversionRequest.from_args(document, output, LatexEngine.LUALATEX), vendored)

    assert output.read_text(encoding="utf-8").startswith("%PDF-1.4 lualatex")


def test_font_failure_falls_back_to_xelatex_once(vendored: Tex2PdfConfig, document: Path, tmp_path: Path) -> None:
    pdflatex_calls = tmp_path / "pdflatex-called"
    _engine(vendored, "pdflatex", FONT_FAILURE.format(calls=pdflatex_calls))
    _engine(vendored, "xelatex", SUCCEED.format(engine="xelatex"))
    request = ConversionRequest.from_args(document, engine=LatexEngine.PDFLATEX)

    used = convert(request, vendored)

    assert used == LatexEngine.XELATEX
    assert pdflatex_calls.exists()
    assert request.output_path.read_text(encoding="utf-8").startswith("%PDF-1.4 xelatex")


def test_fallback_failure_is_terminal(vendored: Tex2PdfConfig, document: Path, tmp_path: Path) -> None:
    _engine(vendored, "pdflatex", FONT_FAILURE.format(calls=tmp_path / "a"))
    _engine(vendored, "xelatex", FONT_FAILURE.format(calls=tmp_path / "b"))
    request = ConversionRequest.from_args(document)

    with pytest.raises(ConversionError) as excinfo:
        convert(request, vendored)

    assert excinfo.value.engine == "xelatex"
    assert not request.output_path.exists()


def test_non_font_failure_is_not_retried(vendored: Tex2PdfConfig, document: Path, tmp_path: Path) -> None:
    xelatex_calls = tmp_path / "xelatex-called"
    _engine(vendored, "pdflatex", SYNTAX_FAILURE)
    _engine(vendored, "xelatex", f"touch {xelatex_calls}\n" + SUCCEED.format(engine="xelatex"))
    request = ConversionRequest.from_args(document)

    with pytest.raises(ConversionError) as excinfo:
        convert(request, vendored)

    assert excinfo.value.compile_error is True
    assert "Undefined control sequence" in excinfo.value.log_excerpt
    assert str(excinfo.value).startswith("Command failed")
    assert not xelatex_calls.exists()
    assert not request.output_path.exists()


def test_font_failure_with_other_engine_is_not_retried(
    vendored: Tex2PdfConfig, document: Path, tmp_path: Path
) -> None:
    _engine(vendored, "lualatex", FONT_FAILURE.format(calls=tmp_path / "lua"))
    _engine(vendored, "xelatex", SUCCEED.format(engine="xelatex"))

    with pytest.raises(ConversionError):
        convert(ConversionRequest.from_args(document, engine=LatexEngine.LUALATEX), vendored)


def test_engine_without_log_reports_output_tail(vendored: Tex2PdfConfig, document: Path) -> None:
    _engine(vendored, "pdflatex", "echo 'fatal: engine crashed'\nexit 3\n")

    with pytest.raises(ConversionError, match="engine crashed"):
        convert(ConversionRequest.from_args(document), vendored)


def test_missing_input_never_invokes_engine(vendored: Tex2PdfConfig, tmp_path: Path) -> None:
    called = tmp_path / "called"
    _engine(vendored, "pdflatex", f"touch {called}\n")

    with pytest.raises(InputNotFoundError):
        convert(ConversionRequest.from_args(tmp_path / "missing.tex"), vendored)

    assert not called.exists()


def test_unresolvable_engine_is_reported(no_system_latex, config: Tex2PdfConfig, document: Path) -> None:
    with pytest.raises(EngineNotFoundError, match="pdflatex"):
        convert(ConversionRequest.from_args(document), config)


def test_is_font_failure_matches_font_messages() -> None:
    assert is_font_failure(ConversionError("! Font \\T1/cmr not loadable", engine="pdflatex"))
    assert is_font_failure(ConversionError("Fatal Package fontspec Error", engine="pdflatex"))
    assert not is_font_failure(ConversionError("! Undefined control sequence.", engine="pdflatex"))


def test_default_output_path_replaces_extension() -> None:
    assert default_output_path(Path("dir/paper.tex")) == Path("dir/paper.pdf")
    assert default_output_path(Path("notes")) == Path("notes.pdf")
    assert default_output_path(Path("a.b.tex")) == Path("a.b.pdf")
