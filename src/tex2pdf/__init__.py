"""
tex2pdf -- convert TeX documents to PDF with zero setup.

Locates a LaTeX engine on the host, installs a vendored TinyTeX when none
is found, and runs the engine to produce the PDF.
"""

__version__ = "0.1.0"

from tex2pdf.config import LatexEngine, Tex2PdfConfig
from tex2pdf.converter import convert
from tex2pdf.models import ConversionRequest, EngineLocation, EngineOrigin, InstallResult
from tex2pdf.provisioner import Provisioner, ensure_latex

__all__ = [
    "ConversionRequest",
    "EngineLocation",
    "EngineOrigin",
    "InstallResult",
    "LatexEngine",
    "Provisioner",
    "Tex2PdfConfig",
    "convert",
    "ensure_latex",
]
