"""Exception hierarchy for tex2pdf."""

from __future__ import annotations


class Tex2PdfError(RuntimeError):
    """Base class for tex2pdf failures."""


class ProvisionError(Tex2PdfError):
    """Raised when the vendored LaTeX distribution cannot be installed."""


class DownloadError(ProvisionError):
    """Raised when the distribution archive fails to download."""


class TooManyRedirectsError(DownloadError):
    """Raised when the download exceeds the redirect hop limit."""


class ExtractionError(ProvisionError):
    """Raised when the distribution archive cannot be unpacked."""


class InstallLockError(ProvisionError):
    """Raised when another install holds the lock for too long."""


class InputNotFoundError(Tex2PdfError):
    """Raised when the TeX source file does not exist."""


class EngineNotFoundError(Tex2PdfError):
    """Raised when a LaTeX engine cannot be resolved."""


class ConversionError(Tex2PdfError):
    """Raised when the LaTeX engine fails to produce a PDF."""

    def __init__(
        self,
        message: str,
        *,
        engine: str,
        log_excerpt: str = "",
        compile_error: bool = False,
    ) -> None:
        super().__init__(message)
        self.engine = engine
        self.log_excerpt = log_excerpt
        self.compile_error = compile_error
