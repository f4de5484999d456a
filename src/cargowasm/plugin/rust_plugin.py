"""
Bundler plugin hooks.

RustPlugin is what the bundler talks to. It owns the options resolver and
the BuildSession, rebuilds both at build_start, and routes each hook to the
component that handles it:

    build_start       reset session, resolve options, report deprecations
    resolve_id, load  VirtualModuleBridge
    transform         BuildOrchestrator (Cargo.toml only)
    resolve_file_url  AssetPublisher
"""

import logging
import os
from typing import Any, Callable, Mapping, Optional

from ..build.orchestrator import BuildOrchestrator
from ..build.session import BuildSession
from ..bundler import FileUrlInfo, PluginContext, ResolvedId, TransformResult
from ..config.file_filter import FileFilter
from ..config.manifest import MANIFEST_FILENAME
from ..config.options import BuildOptions, OptionsResolver
from ..logging_setup import configure_logging
from .bridge import VirtualModuleBridge

logger = logging.getLogger(__name__)

OrchestratorFactory = Callable[[BuildOptions, BuildSession], BuildOrchestrator]


class RustPlugin:
    """Compiles Cargo.toml imports to WebAssembly plus a JavaScript loader."""

    name = "rust"

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        orchestrator_factory: Optional[OrchestratorFactory] = None
    ):
        """
        Args:
            options: User options (see OptionsResolver for keys)
            orchestrator_factory: Builds the orchestrator for each build pass

        Raises:
            OptionsError: If options are invalid
        """
        self.resolver = OptionsResolver(options)
        self.session = BuildSession()
        self.bridge = VirtualModuleBridge(self.session.fake_dirs)
        self.orchestrator_factory = orchestrator_factory or BuildOrchestrator
        self._configure(self.resolver.resolve(watch_mode=False))

    def _configure(self, options: BuildOptions) -> None:
        self.options = options
        self.filter = FileFilter(options.include, options.exclude)
        self.orchestrator = self.orchestrator_factory(options, self.session)

    def build_start(self, context: PluginContext) -> None:
        """Start a build pass: clear session state and re-resolve options."""
        self.session.reset()

        for message in self.resolver.pending_warnings():
            context.warn(message)

        self._configure(self.resolver.resolve(watch_mode=bool(context.watch_mode)))
        configure_logging(self.options.verbose)

    def resolve_id(self, source: str, importer: Optional[str] = None) -> Optional[ResolvedId]:
        return self.bridge.resolve_id(source, importer)

    def load(self, module_id: str) -> Optional[str]:
        return self.bridge.load(module_id)

    def transform(self, context: PluginContext, code: str, module_id: str) -> Optional[TransformResult]:
        """Replace a Cargo.toml module with its generated loader."""
        if os.path.basename(module_id) != MANIFEST_FILENAME or not self.filter(module_id):
            return None

        return self.orchestrator.build(context, code, module_id)

    def resolve_file_url(self, info: FileUrlInfo) -> Optional[str]:
        return self.orchestrator.publisher.resolve_file_url(info)


def rust(options: Optional[Mapping[str, Any]] = None) -> RustPlugin:
    """Create the plugin.

    Example:
        plugins = [rust({"inline_wasm": True, "verbose": True})]
    """
    return RustPlugin(options)
