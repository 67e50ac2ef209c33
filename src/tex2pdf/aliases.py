"""Repair the engine aliases in the vendored TinyTeX bin directory.

TinyTeX ships the engines under their core names (``pdftex``, ``xetex``...)
and its archive occasionally contains dangling symlinks.  A repair pass
prunes broken entries, then links each core binary to the name LaTeX users
expect, falling back to a plain copy where symlinks are unavailable.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from tex2pdf.config import Tex2PdfConfig
from tex2pdf.models import RepairReport

logger = logging.getLogger(__name__)

ENGINE_ALIASES: tuple[tuple[str, str], ...] = (
    ("pdftex", "pdflatex"),
    ("tex", "latex"),
    ("luatex", "lualatex"),
    ("xetex", "xelatex"),
)


def _prune_broken_entries(bin_dir: Path) -> list[str]:
    removed: list[str] = []
    for entry in sorted(bin_dir.iterdir()):
        try:
            is_link = entry.is_symlink()
            broken = is_link and not os.path.exists(entry)
        except OSError:
            # Entry cannot even be inspected; try to get rid of it.
            broken = True
        if not broken:
            continue
        try:
            entry.unlink()
        except OSError as exc:
            logger.debug("Could not remove %s: %s", entry, exc)
            continue
        removed.append(entry.name)
    return removed


def _create_alias(source: Path, alias: Path) -> None:
    try:
        alias.symlink_to(source.name)
        return
    except (OSError, NotImplementedError) as exc:
        logger.debug("Symlink %s -> %s failed (%s); copying instead", alias, source, exc)
    shutil.copy2(source, alias)


def repair_aliases(config: Tex2PdfConfig) -> RepairReport:
    """Prune broken links and create missing engine aliases.

    Existing aliases are never overwritten and an alias is only created
    when its source binary exists.  Aliases whose creation failed are
    reported in ``unresolved``.
    """

    bin_dir = config.bin_dir
    if not bin_dir.is_dir():
        return RepairReport(bin_exists=False)

    report = RepairReport(bin_exists=True, removed=_prune_broken_entries(bin_dir))
    if report.removed:
        logger.info("Fixed %d broken symlinks", len(report.removed))

    for source_name, alias_name in ENGINE_ALIASES:
        source = bin_dir / config.executable(source_name)
        alias = bin_dir / config.executable(alias_name)
        if not source.exists() or os.path.lexists(alias):
            continue
        try:
            _create_alias(source, alias)
        except OSError as exc:
            logger.warning("Could not create %s from %s: %s", alias.name, source.name, exc)
            report.unresolved.append(alias.name)
            continue
        report.created.append(alias.name)

    return report
