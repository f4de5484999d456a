"""wasm-opt invocation.

wasm-opt writes to a temporary file that then replaces the binary, so a
failed run leaves the unoptimized binary exactly as wasm-bindgen wrote it.
"""

import logging
import platform
import subprocess
from pathlib import Path

from ..config.options import BuildOptions
from ..errors import OptimizerError
from ..packages.wasm_bindgen import GENERATED_WASM_FILENAME
from .build_utils import replace_file

logger = logging.getLogger(__name__)

TEMP_FILENAME = "wasm_opt.wasm"


class WasmOptimizer:
    """Runs wasm-opt over the generated binary in place."""

    @staticmethod
    def command_name() -> str:
        # npm installs wasm-opt as a .cmd shim on Windows
        return "wasm-opt.cmd" if platform.system() == "Windows" else "wasm-opt"

    def build_command(self, options: BuildOptions) -> list[str]:
        return [self.command_name(), GENERATED_WASM_FILENAME, "--output", TEMP_FILENAME, *options.wasm_opt_args]

    def optimize(self, out_dir: Path, options: BuildOptions) -> Path:
        """
        Optimize out_dir/index_bg.wasm.

        Args:
            out_dir: wasm-bindgen output directory
            options: Resolved build options (wasm_opt_args)

        Returns:
            Path to the optimized binary

        Raises:
            OptimizerError: If wasm-opt is missing or fails. The original
                binary is left untouched.
        """
        out_dir = Path(out_dir)
        temp_path = out_dir / TEMP_FILENAME
        cmd = self.build_command(options)

        logger.debug(f"Running {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, cwd=str(out_dir))
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise OptimizerError(str(e)) from e

        if result.returncode != 0:
            temp_path.unlink(missing_ok=True)
            raise OptimizerError(f"wasm-opt exited with code {result.returncode}")

        if not temp_path.is_file():
            raise OptimizerError(f"wasm-opt did not write {temp_path}")

        wasm_path = out_dir / GENERATED_WASM_FILENAME
        replace_file(temp_path, wasm_path)
        return wasm_path
