from pathlib import Path

import pytest

from tex2pdf import locator
from tex2pdf.config import Tex2PdfConfig


@pytest.fixture
def config(tmp_path: Path) -> Tex2PdfConfig:
    return Tex2PdfConfig(install_root=tmp_path / "tool" / ".tinytex", platform="linux", lock_timeout=0.05)


@pytest.fixture
def no_system_latex(monkeypatch):
    monkeypatch.setattr(locator.shutil, "which", lambda _name: None)
