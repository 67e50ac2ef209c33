"""Download, unpack and repair a vendored TinyTeX distribution."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tarfile
import tempfile
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath

from tex2pdf.aliases import repair_aliases
from tex2pdf.config import FALLBACK_ENGINE, HOME_ENV_VAR, Tex2PdfConfig, is_windows
from tex2pdf.download import download_file
from tex2pdf.errors import ExtractionError, InstallLockError, ProvisionError
from tex2pdf.locator import find_system_latex, has_latex, vendored_installed
from tex2pdf.models import InstallResult

logger = logging.getLogger(__name__)

# Engine that must exist for a vendored install to count as ready.
READY_ENGINE = FALLBACK_ENGINE.value


def manual_install_hints(platform: str) -> list[str]:
    hints = [
        "https://tug.org/texlive/ (TeX Live)",
        "https://miktex.org/ (MiKTeX for Windows)",
        "https://yihui.org/tinytex/ (TinyTeX)",
    ]
    if is_windows(platform):
        hints += ["choco install tinytex", "scoop install tinytex"]
    return hints


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def _strip_first_component(name: str) -> str | None:
    parts = PurePosixPath(name).parts
    if len(parts) <= 1:
        return None
    return str(PurePosixPath(*parts[1:]))


def _stripped_members(archive: tarfile.TarFile) -> Iterator[tarfile.TarInfo]:
    for member in archive.getmembers():
        stripped = _strip_first_component(member.name)
        if stripped is None:
            continue
        member.name = stripped
        if member.islnk():
            # Hard link targets are archive-relative, so they lose the prefix too.
            member.linkname = _strip_first_component(member.linkname) or member.linkname
        yield member


def _extract_tar(archive_path: Path, destination: Path) -> None:
    with tarfile.open(archive_path, "r:*") as archive:
        archive.extractall(destination, members=_stripped_members(archive), filter="data")


def _move_stripped(staging: Path, destination: Path) -> None:
    for top in staging.iterdir():
        if not top.is_dir():
            continue
        for item in top.iterdir():
            target = destination / item.name
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            elif target.exists() or target.is_symlink():
                target.unlink()
            shutil.move(str(item), target)


def _extract_zip_windows(archive_path: Path, destination: Path) -> None:
    staging = Path(tempfile.mkdtemp(prefix="tinytex-unzip-", dir=destination.parent))
    try:
        command = [
            "powershell",
            "-NoProfile",
            "-Command",
            f"Expand-Archive -Path '{archive_path}' -DestinationPath '{staging}' -Force",
        ]
        process = subprocess.run(command, capture_output=True, text=True, check=False)
        if process.returncode != 0:
            raise ExtractionError(process.stderr.strip() or "Expand-Archive failed")
        _move_stripped(staging, destination)
    finally:
        shutil.rmtree(staging, ignore_errors=True)


def extract_archive(archive_path: Path, destination: Path, *, windows: bool = False) -> None:
    """Unpack ``archive_path`` into ``destination`` without its top-level folder."""

    destination.mkdir(parents=True, exist_ok=True)
    try:
        if windows:
            _extract_zip_windows(archive_path, destination)
        else:
            _extract_tar(archive_path, destination)
    except (OSError, tarfile.TarError) as exc:
        raise ExtractionError(f"Unable to extract '{archive_path.name}': {exc}") from exc


# ---------------------------------------------------------------------------
# Cross-process install lock
# ---------------------------------------------------------------------------


def _lock_is_stale(lock_path: Path) -> bool:
    """Return True when the lock file names a process that no longer exists."""

    if os.name != "posix":
        return False
    try:
        pid = int(lock_path.read_text(encoding="ascii").strip())
    except (OSError, ValueError):
        # Missing, or still being written by its owner.
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return True
    except PermissionError:
        return False
    return False


@contextmanager
def install_lock(lock_path: Path, timeout: float, poll_interval: float = 0.5):
    """Hold an exclusive lock file for the duration of an install."""

    lock_path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout
    announced = False
    while True:
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            break
        except FileExistsError:
            if _lock_is_stale(lock_path):
                logger.info("Removing stale install lock %s", lock_path)
                lock_path.unlink(missing_ok=True)
                continue
            if time.monotonic() >= deadline:
                raise InstallLockError(
                    f"Timed out after {timeout:g}s waiting for install lock {lock_path}"
                ) from None
            if not announced:
                logger.info("Waiting for another tex2pdf install to finish (%s)", lock_path)
                announced = True
            time.sleep(poll_interval)

    try:
        os.write(fd, str(os.getpid()).encode("ascii"))
    finally:
        os.close(fd)

    try:
        yield lock_path
    finally:
        lock_path.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Provisioner
# ---------------------------------------------------------------------------


class Provisioner:
    """Make sure a LaTeX engine is available, installing TinyTeX if needed."""

    def __init__(
        self,
        config: Tex2PdfConfig,
        *,
        downloader: Callable[..., object] | None = None,
        extractor: Callable[..., None] | None = None,
    ) -> None:
        self.config = config
        self._download = downloader or download_file
        self._extract = extractor or extract_archive

    def ensure_installed(self) -> InstallResult:
        """Install the vendored distribution unless a usable one already exists.

        Failures are logged and reported in the result.
        """

        logger.info("Checking for LaTeX installation...")
        skipped = self._already_available()
        if skipped is not None:
            return skipped

        try:
            with install_lock(self.config.lock_path, self.config.lock_timeout):
                # Another process may have finished the install while we waited.
                skipped = self._already_available()
                if skipped is not None:
                    return skipped
                self._install()
        except (ProvisionError, OSError) as exc:
            logger.error("Error installing TinyTeX: %s", exc)
            return InstallResult(success=False, error=str(exc))

        logger.info("TinyTeX installed successfully!")
        logger.info("Location: %s", self.config.install_root)
        return InstallResult(success=True, installed_path=self.config.install_root)

    def _already_available(self) -> InstallResult | None:
        system_dir = find_system_latex()
        if system_dir is not None:
            logger.info("Found existing LaTeX installation. Skipping TinyTeX installation.")
            return InstallResult(success=True, installed_path=system_dir, skipped=True)

        if vendored_installed(self.config, READY_ENGINE):
            self.repair()
            logger.info("TinyTeX is already installed and ready.")
            return InstallResult(success=True, installed_path=self.config.install_root, skipped=True)

        return None

    def repair(self) -> list[str]:
        """Run an alias repair pass and return the aliases it could not create."""

        report = repair_aliases(self.config)
        if report.unresolved:
            logger.warning("Unresolved engine aliases: %s", ", ".join(report.unresolved))
        return report.unresolved

    def _check_install_root(self) -> None:
        """Refuse to replace a directory that is not a previous TinyTeX install."""

        root = self.config.install_root
        if not root.exists() or self.config.marker_path.is_file():
            return
        if not root.is_dir() or any(root.iterdir()):
            raise ProvisionError(
                f"Install root {root} exists and is not a tex2pdf install; "
                f"choose an empty directory for {HOME_ENV_VAR}"
            )

    def _swap_in(self, staging: Path) -> None:
        root = self.config.install_root
        if root.exists():
            if self.config.marker_path.is_file():
                shutil.rmtree(root)
            else:
                root.rmdir()
        os.replace(staging, root)

    def _install(self) -> None:
        config = self.config
        self._check_install_root()
        suffix = ".zip" if config.windows else ".tar.gz"
        config.install_root.parent.mkdir(parents=True, exist_ok=True)

        fd, raw_path = tempfile.mkstemp(prefix="tinytex-", suffix=suffix, dir=config.install_root.parent)
        os.close(fd)
        archive_path = Path(raw_path)
        staging = Path(tempfile.mkdtemp(prefix="tinytex-staging-", dir=config.install_root.parent))

        logger.info("LaTeX not found. Installing TinyTeX (this may take a few minutes)...")
        try:
            logger.info("Downloading TinyTeX (~200MB) from %s", config.archive_url)
            self._download(
                config.archive_url,
                archive_path,
                max_redirects=config.max_redirects,
                timeout=config.download_timeout,
            )

            logger.info("Extracting TinyTeX...")
            self._extract(archive_path, staging, windows=config.windows)
            self._swap_in(staging)
        finally:
            archive_path.unlink(missing_ok=True)
            shutil.rmtree(staging, ignore_errors=True)

        self.repair()
        if not (config.bin_dir / config.executable(READY_ENGINE)).exists():
            shutil.rmtree(config.install_root, ignore_errors=True)
            raise ProvisionError(f"Archive did not provide {READY_ENGINE} under {config.bin_dir}")
        config.marker_path.write_text(f"{config.archive_url}\n", encoding="utf-8")


def ensure_latex(config: Tex2PdfConfig, provisioner: Provisioner | None = None) -> bool:
    """Return True once an engine is reachable, installing TinyTeX if needed."""

    provisioner = provisioner or Provisioner(config)
    if not has_latex(config):
        logger.info("This is a one-time setup (~200MB download)")
        provisioner.ensure_installed()

    provisioner.repair()
    return has_latex(config)
