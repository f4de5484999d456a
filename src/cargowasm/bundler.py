"""
Bundler protocol types.

The host bundler drives the plugin through hooks and hands it a context
object for side effects (warnings, emitted files, watch registrations).
These dataclasses and the PluginContext interface describe that protocol.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

FILE_URL_PLACEHOLDER = "import.meta.ROLLUP_FILE_URL_{reference_id}"


@dataclass
class ModuleInfo:
    """What the bundler knows about a module."""

    id: str
    is_entry: bool = False


@dataclass
class EmittedAsset:
    """A file the bundler should write to the output directory.

    Attributes:
        source: File contents
        name: Name hint; the bundler derives the final file name from it
        file_name: Fixed output file name, bypassing the bundler's naming
    """

    source: bytes
    name: Optional[str] = None
    file_name: Optional[str] = None
    type: str = "asset"


@dataclass
class ResolvedId:
    """Result of a resolve hook."""

    id: str
    module_side_effects: bool = True


@dataclass
class TransformResult:
    """Result of a transform hook."""

    code: str
    map: Dict[str, str] = field(default_factory=lambda: {"mappings": ""})
    module_side_effects: Optional[bool] = None


@dataclass
class FileUrlInfo:
    """Argument of the resolve-file-url hook."""

    reference_id: str
    file_name: str


class PluginContext(ABC):
    """Side-effect interface the bundler passes to hooks."""

    watch_mode: bool = False

    @abstractmethod
    def warn(self, message: str) -> None:
        """Report a non-fatal warning."""

    @abstractmethod
    def emit_file(self, asset: EmittedAsset) -> str:
        """Register an asset and return its reference id."""

    @abstractmethod
    def add_watch_file(self, path: str) -> None:
        """Rebuild the current module when `path` changes."""

    @abstractmethod
    def get_module_info(self, module_id: str) -> ModuleInfo:
        """Look up a module in the graph."""


def file_url_expression(reference_id: str) -> str:
    """JavaScript expression the bundler replaces with the asset's URL."""
    return FILE_URL_PLACEHOLDER.format(reference_id=reference_id)
