import os
import stat
import sys
from pathlib import Path

import pytest

from tex2pdf.config import Tex2PdfConfig

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="needs POSIX shell scripts and symlinks")


def write_script(path: Path, body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def mark_installed(config: Tex2PdfConfig) -> None:
    config.bin_dir.mkdir(parents=True, exist_ok=True)
    config.marker_path.write_text("test\n", encoding="utf-8")


def entries(directory: Path) -> set[str]:
    return set(os.listdir(directory))
