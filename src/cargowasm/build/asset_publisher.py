"""Asset publication.

The compiled binary is handed to the bundler as an asset. Its final file
name is only known in the bundler's output phase, when the bundler calls back
into resolve_file_url with the reference id returned here.
"""

import logging
import posixpath
from typing import Optional

from ..bundler import EmittedAsset, FileUrlInfo, PluginContext, file_url_expression
from ..config.options import OUT_DIR_DEPRECATION, BuildOptions
from .session import EmittedAssetRegistry

logger = logging.getLogger(__name__)


class AssetPublisher:
    """Emits wasm binaries as assets and resolves their URLs."""

    def __init__(self, options: BuildOptions, registry: EmittedAssetRegistry):
        self.options = options
        self.registry = registry

    def publish(self, context: PluginContext, wasm: bytes, module_name: str) -> str:
        """
        Emit the binary as an asset.

        Args:
            context: Bundler context
            wasm: Final binary
            module_name: Normalized crate name, used for the asset name

        Returns:
            Reference id of the emitted asset
        """
        filename = f"{module_name}.wasm"

        if self.options.out_dir is None:
            asset = EmittedAsset(source=wasm, name=filename)
        else:
            context.warn(OUT_DIR_DEPRECATION)
            asset = EmittedAsset(source=wasm, file_name=posixpath.join(self.options.out_dir, filename))

        reference_id = context.emit_file(asset)
        self.registry.add(reference_id)

        logger.debug(f"Emitted {filename} as asset {reference_id}")
        return reference_id

    @staticmethod
    def url_expression(reference_id: str) -> str:
        return file_url_expression(reference_id)

    def resolve_file_url(self, info: FileUrlInfo) -> Optional[str]:
        """Return the URL expression for our assets, None for anyone else's."""
        if info.reference_id not in self.registry:
            return None

        return self.options.import_hook(self.options.server_path + info.file_name)
