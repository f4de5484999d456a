"""
Cargo.toml parsing and validation.

Only the fields the build needs are extracted: the package name, the optional
library name and the library crate types.

Example Cargo.toml:
    [package]
    name = "my-crate"

    [lib]
    crate-type = ["cdylib"]
"""

import tomllib
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import ManifestError

MANIFEST_FILENAME = "Cargo.toml"
CDYLIB = "cdylib"


@dataclass
class CargoManifest:
    """The parts of Cargo.toml used by the build."""

    package_name: str
    lib_name: Optional[str] = None
    crate_types: Optional[List[str]] = field(default=None)

    @classmethod
    def parse(cls, text: str) -> "CargoManifest":
        """
        Parse Cargo.toml text.

        Args:
            text: Raw manifest contents

        Returns:
            CargoManifest

        Raises:
            ManifestError: If the TOML is malformed or package.name is missing
        """
        try:
            document = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"Failed to parse Cargo.toml: {e}") from e

        package = document.get("package")
        if not isinstance(package, dict) or not isinstance(package.get("name"), str):
            raise ManifestError("Cargo.toml is missing `package.name`")

        lib = document.get("lib")
        lib_name = None
        crate_types = None
        if isinstance(lib, dict):
            if isinstance(lib.get("name"), str):
                lib_name = lib["name"]
            if isinstance(lib.get("crate-type"), list):
                crate_types = list(lib["crate-type"])

        return cls(package_name=package["name"], lib_name=lib_name, crate_types=crate_types)

    def validate(self) -> None:
        """
        Check that the crate builds a C-compatible dynamic library.

        Raises:
            ManifestError: If `lib.crate-type` does not contain "cdylib"
        """
        if self.crate_types is not None and CDYLIB in self.crate_types:
            return

        raise ManifestError('Cargo.toml must use `crate-type = ["cdylib"]`')

    @property
    def module_name(self) -> str:
        """Artifact name as cargo writes it (dashes become underscores)."""
        return (self.lib_name or self.package_name).replace("-", "_")


def load_manifest(text: str) -> CargoManifest:
    """Parse and validate Cargo.toml text in one step."""
    manifest = CargoManifest.parse(text)
    manifest.validate()
    return manifest
