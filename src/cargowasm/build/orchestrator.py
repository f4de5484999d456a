"""
Build orchestration for Cargo.toml modules.

This module coordinates the pipeline that turns a Cargo.toml into loader
code for the bundler:

1. Parse and validate Cargo.toml (no subprocess runs if this fails)
2. Acquire the process-wide build lock
3. cargo build --target wasm32-unknown-unknown
4. Resolve the output directory and clear stale glue
5. wasm-bindgen
6. wasm-opt (release builds only; failure is a warning)
7. Register the synthetic glue directory, publish the binary, generate the loader

Watch-pattern globbing runs on a worker thread alongside steps 1-7.
"""

import logging
import os
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from ..bundler import PluginContext, TransformResult
from ..config.manifest import CargoManifest, load_manifest
from ..config.options import BuildOptions
from ..errors import BuildOrchestratorError, OptimizerError
from ..packages.wasm_bindgen import GENERATED_WASM_FILENAME, WasmBindgen
from .asset_publisher import AssetPublisher
from .build_lock import BuildLock
from .cargo import CargoToolchain
from .loader_generator import LoaderCodeGenerator
from .optimizer import WasmOptimizer
from .output_locator import BuildTarget, OutputLocator
from .session import BuildSession, glue_import_path, synthetic_dir_name
from .watch import WatchDependencyRegistrar

logger = logging.getLogger(__name__)

COMPILATION_FAILED = "Rust compilation failed"


class BuildOrchestrator:
    """
    Orchestrates one Cargo.toml transform.

    Example usage:
        orchestrator = BuildOrchestrator(options, session)
        result = orchestrator.build(context, source, "/app/crate/Cargo.toml")
        print(result.code)
    """

    def __init__(
        self,
        options: BuildOptions,
        session: BuildSession,
        cargo: Optional[CargoToolchain] = None,
        bindgen: Optional[WasmBindgen] = None,
        optimizer: Optional[WasmOptimizer] = None,
        lock: Optional[BuildLock] = None
    ):
        """
        Args:
            options: Resolved build options
            session: Session state shared with the bridge and URL resolution
            cargo: cargo runner
            bindgen: wasm-bindgen runner
            optimizer: wasm-opt runner
            lock: Build lock (defaults to the process-wide lock)
        """
        self.options = options
        self.session = session
        self.cargo = cargo or CargoToolchain()
        self.bindgen = bindgen or WasmBindgen()
        self.optimizer = optimizer or WasmOptimizer()
        self.lock = lock or BuildLock()
        self.locator = OutputLocator(self.cargo)
        self.publisher = AssetPublisher(options, session.assets)
        self.generator = LoaderCodeGenerator(options)
        self.watcher = WatchDependencyRegistrar(options)

    def build(self, context: PluginContext, source: str, manifest_id: str) -> TransformResult:
        """
        Build the crate behind a Cargo.toml module.

        Args:
            context: Bundler context
            source: Cargo.toml contents
            manifest_id: Module id of Cargo.toml

        Returns:
            TransformResult with the loader code

        Raises:
            ManifestError: If Cargo.toml is not a cdylib crate
            BuildOrchestratorError: If compilation fails (non-verbose mode)
            ToolchainError: If compilation fails (verbose mode, original error)
        """
        crate_dir = Path(os.path.dirname(os.path.abspath(manifest_id)))

        return self.session.memoize(
            manifest_id,
            lambda: self._build_watched(context, crate_dir, source, manifest_id),
        )

    def _build_watched(
        self,
        context: PluginContext,
        crate_dir: Path,
        source: str,
        manifest_id: str
    ) -> TransformResult:
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="cargowasm-watch") as executor:
            watch_future = executor.submit(self.watcher.collect, crate_dir)
            try:
                return self._compile_crate(context, crate_dir, source, manifest_id)
            finally:
                # Sources are watched even when the build fails
                self._register_watch_files(context, watch_future)

    def _register_watch_files(self, context: PluginContext, watch_future: Future) -> None:
        try:
            self.watcher.register(context, watch_future.result())
        except OSError as e:
            message = f"Could not watch crate sources: {e}"
            logger.debug(message)
            context.warn(message)

    def _compile_crate(
        self,
        context: PluginContext,
        crate_dir: Path,
        source: str,
        manifest_id: str
    ) -> TransformResult:
        manifest = load_manifest(source)
        start_time = time.time()

        try:
            with self.lock.hold(manifest.module_name) as ticket:
                self.session.lock_ticket = ticket
                try:
                    result = self._run_pipeline(context, crate_dir, manifest, manifest_id)
                finally:
                    self.session.lock_ticket = None

        except KeyboardInterrupt:
            raise
        except Exception as e:
            if self.options.verbose:
                raise
            logger.debug(f"Compilation of {manifest.module_name} failed: {e}")
            raise BuildOrchestratorError(COMPILATION_FAILED) from None

        logger.debug(f"Built {manifest.module_name} in {time.time() - start_time:.2f}s")
        return result

    def _run_pipeline(
        self,
        context: PluginContext,
        crate_dir: Path,
        manifest: CargoManifest,
        manifest_id: str
    ) -> TransformResult:
        name = manifest.module_name

        self.cargo.compile(crate_dir, self.options)

        target = self.locator.resolve(crate_dir, name, self.options)

        self.bindgen.generate(crate_dir, target.wasm_path, target.out_dir, self.options)

        if not self.options.debug:
            self._optimize(context, target)

        return self._emit_loader(context, crate_dir, target, manifest_id)

    def _optimize(self, context: PluginContext, target: BuildTarget) -> None:
        try:
            self.optimizer.optimize(target.out_dir, self.options)
        except OptimizerError as e:
            message = f"wasm-opt failed: {e}"
            logger.debug(message)
            context.warn(message)

    def _emit_loader(
        self,
        context: PluginContext,
        crate_dir: Path,
        target: BuildTarget,
        manifest_id: str
    ) -> TransformResult:
        name = target.module_name
        wasm_path = target.out_dir / GENERATED_WASM_FILENAME

        logger.debug(f"Looking for wasm at {wasm_path}")
        wasm = wasm_path.read_bytes()

        is_entry = context.get_module_info(manifest_id).is_entry

        fake_dir = os.path.join(str(crate_dir), synthetic_dir_name(name))
        self.session.fake_dirs.add(fake_dir, str(target.out_dir))

        import_path = glue_import_path(name)

        if self.options.inline_wasm:
            code = self.generator.generate(wasm, import_path, is_entry)
        else:
            reference_id = self.publisher.publish(context, wasm, name)
            code = self.generator.generate(
                wasm,
                import_path,
                is_entry,
                wasm_url=self.publisher.url_expression(reference_id),
            )

        return TransformResult(
            code=code,
            module_side_effects=None if is_entry else False,
        )
