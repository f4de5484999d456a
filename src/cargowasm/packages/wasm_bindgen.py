"""wasm-bindgen provisioning and invocation.

The wasm-bindgen CLI must match the `wasm-bindgen` crate version the Rust code
links against, so the version is read from Cargo.lock rather than taken from
whatever happens to be installed.

Lookup order for the executable:
    1. tool cache (~/.cargowasm/cache/tools/wasm-bindgen/<version>/)
    2. a `wasm-bindgen` on PATH reporting the same version
    3. the GitHub release archive for the host platform, downloaded into the cache
"""

import logging
import shutil
import stat
import subprocess
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config.options import BuildOptions
from ..errors import BindgenError
from .cache import Cache
from .downloader import DownloadError, ExtractionError, PackageDownloader
from .platform_utils import PlatformDetector, PlatformError

logger = logging.getLogger(__name__)

TOOL_NAME = "wasm-bindgen"
OUT_NAME = "index"
GLUE_FILENAME = f"{OUT_NAME}.js"
GENERATED_WASM_FILENAME = f"{OUT_NAME}_bg.wasm"
RELEASE_URL = (
    "https://github.com/rustwasm/wasm-bindgen/releases/download/"
    "{version}/wasm-bindgen-{version}-{target}.tar.gz"
)


class WasmBindgen:
    """Locates the matching wasm-bindgen CLI and runs it on a compiled crate."""

    def __init__(
        self,
        cache: Optional[Cache] = None,
        downloader: Optional[PackageDownloader] = None,
        show_progress: bool = True
    ):
        """
        Args:
            cache: Tool cache (defaults to the user-level cache)
            downloader: Downloader used for release archives
            show_progress: Show a progress bar while downloading
        """
        self.cache = cache or Cache()
        self.downloader = downloader or PackageDownloader()
        self.show_progress = show_progress

    @staticmethod
    def find_lockfile(crate_dir: Path) -> Optional[Path]:
        """Find the nearest Cargo.lock at or above crate_dir."""
        crate_dir = Path(crate_dir).resolve()
        for directory in [crate_dir, *crate_dir.parents]:
            lockfile = directory / "Cargo.lock"
            if lockfile.is_file():
                return lockfile
        return None

    def find_version(self, crate_dir: Path) -> str:
        """
        Read the locked wasm-bindgen version for a crate.

        Args:
            crate_dir: Directory containing Cargo.toml

        Returns:
            Version string (e.g., '0.2.92')

        Raises:
            BindgenError: If there is no Cargo.lock or it has no wasm-bindgen entry
        """
        lockfile = self.find_lockfile(crate_dir)
        if lockfile is None:
            raise BindgenError(
                f"Could not find Cargo.lock for {crate_dir}. "
                + "Make sure wasm-bindgen is listed in [dependencies] and the crate has been built once."
            )

        try:
            with open(lockfile, "rb") as f:
                document = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise BindgenError(f"Failed to parse {lockfile}: {e}") from e

        for package in document.get("package", []):
            if package.get("name") == TOOL_NAME and isinstance(package.get("version"), str):
                return package["version"]

        raise BindgenError(
            f"{lockfile} does not contain wasm-bindgen. "
            + "Add `wasm-bindgen` to [dependencies] in Cargo.toml."
        )

    @staticmethod
    def installed_version(executable: str) -> Optional[str]:
        """Return the version reported by a wasm-bindgen executable, if any."""
        try:
            result = subprocess.run(
                [executable, "--version"],
                capture_output=True,
                text=True,
            )
        except OSError:
            return None

        if result.returncode != 0:
            return None

        # Output looks like "wasm-bindgen 0.2.92"
        parts = result.stdout.strip().split()
        return parts[1] if len(parts) >= 2 else None

    def find_installed(self, version: str) -> Optional[Path]:
        """Return a cached or PATH wasm-bindgen of exactly `version`, without downloading."""
        cached = self.cache.get_tool_dir(TOOL_NAME, version) / PlatformDetector.executable_name(TOOL_NAME)

        if cached.is_file():
            logger.debug(f"Using cached wasm-bindgen {version} at {cached}")
            return cached

        on_path = shutil.which(TOOL_NAME)
        if on_path and self.installed_version(on_path) == version:
            logger.debug(f"Using wasm-bindgen {version} from PATH at {on_path}")
            return Path(on_path)

        return None

    def ensure_binary(self, version: str) -> Path:
        """
        Return a wasm-bindgen executable of exactly `version`.

        Raises:
            BindgenError: If no matching executable can be found or downloaded
        """
        installed = self.find_installed(version)
        if installed is not None:
            return installed

        executable = PlatformDetector.executable_name(TOOL_NAME)
        return self._download(version, self.cache.get_tool_dir(TOOL_NAME, version), executable)

    def _download(self, version: str, tool_dir: Path, executable: str) -> Path:
        try:
            target = PlatformDetector.detect_wasm_bindgen_target()
        except PlatformError as e:
            raise BindgenError(str(e)) from e

        url = RELEASE_URL.format(version=version, target=target)
        extract_dir = tool_dir.parent / f"{version}.extract"

        self.cache.ensure_directories()

        try:
            self.downloader.download_and_extract(
                url,
                self.cache.archives_dir,
                extract_dir,
                show_progress=self.show_progress,
            )
        except (DownloadError, ExtractionError) as e:
            raise BindgenError(f"Could not download wasm-bindgen {version}: {e}") from e

        try:
            found = next(extract_dir.rglob(executable), None)
            if found is None:
                raise BindgenError(f"wasm-bindgen archive from {url} does not contain {executable}")

            tool_dir.mkdir(parents=True, exist_ok=True)
            binary = tool_dir / executable
            found.replace(binary)
            binary.chmod(binary.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        finally:
            shutil.rmtree(extract_dir, ignore_errors=True)

        logger.debug(f"Installed wasm-bindgen {version} to {binary}")
        return binary

    @staticmethod
    def build_command(binary: Path, wasm_path: Path, out_dir: Path, options: BuildOptions) -> List[str]:
        """Build the wasm-bindgen command line."""
        cmd = [
            str(binary),
            str(wasm_path),
            "--out-dir", str(out_dir),
            "--out-name", OUT_NAME,
            "--target", "web",
            "--omit-default-module-path",
        ]

        if options.debug:
            cmd.extend(["--debug", "--keep-debug"])

        return cmd

    def generate(self, crate_dir: Path, wasm_path: Path, out_dir: Path, options: BuildOptions) -> Path:
        """
        Generate the JavaScript glue and the processed binary.

        Args:
            crate_dir: Crate directory (working directory for the tool)
            wasm_path: Binary produced by cargo
            out_dir: Directory that receives index.js and index_bg.wasm
            options: Resolved build options

        Returns:
            Path to the generated index_bg.wasm

        Raises:
            BindgenError: If the tool is missing or exits with an error
        """
        if not Path(wasm_path).is_file():
            raise BindgenError(f"cargo did not produce {wasm_path}")

        binary = self.ensure_binary(self.find_version(crate_dir))
        cmd = self.build_command(binary, wasm_path, out_dir, options)

        logger.debug(f"Running {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, cwd=str(crate_dir))
        except OSError as e:
            raise BindgenError(f"Failed to run wasm-bindgen: {e}") from e

        if result.returncode != 0:
            raise BindgenError(f"wasm-bindgen exited with code {result.returncode}")

        return Path(out_dir) / GENERATED_WASM_FILENAME
