"""
Plugin options.

This module turns the user's option mapping into a fully defaulted
BuildOptions record. Two options (debug, watch) depend on whether the bundler
runs in watch mode, so resolution happens once per build rather than once per
plugin instance.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Set

from ..errors import OptionsError

DEFAULT_WATCH_PATTERNS = ["src/**"]
DEFAULT_WASM_OPT_ARGS = ["-O"]

DEPRECATED_OPTIONS = {
    "wasm_pack_path": "The wasm_pack_path option is deprecated and no longer works",
}

OUT_DIR_DEPRECATION = "The out_dir option is deprecated, use the bundler's asset file naming instead"


def default_import_hook(path: str) -> str:
    """Render a path as a JavaScript string literal."""
    return json.dumps(path)


@dataclass
class BuildOptions:
    """Resolved options for one build pass."""

    debug: bool = False
    watch: bool = False
    cargo_args: List[str] = field(default_factory=list)
    wasm_opt_args: List[str] = field(default_factory=lambda: list(DEFAULT_WASM_OPT_ARGS))
    inline_wasm: bool = False
    nodejs: bool = False
    out_dir: Optional[str] = None
    import_hook: Callable[[str], str] = default_import_hook
    server_path: str = ""
    verbose: bool = False
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    watch_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_WATCH_PATTERNS))


class OptionsResolver:
    """
    Validates user options and resolves them into BuildOptions.

    Usage:
        resolver = OptionsResolver({"inline_wasm": True})
        for message in resolver.pending_warnings():
            context.warn(message)
        options = resolver.resolve(watch_mode=context.watch_mode)
    """

    BOOL_OPTIONS = {"debug", "watch", "inline_wasm", "nodejs", "verbose"}
    LIST_OPTIONS = {"cargo_args", "wasm_opt_args", "include", "exclude", "watch_patterns"}
    STRING_OPTIONS = {"server_path", "out_dir"}
    KNOWN_OPTIONS = (
        BOOL_OPTIONS | LIST_OPTIONS | STRING_OPTIONS | {"import_hook"} | set(DEPRECATED_OPTIONS)
    )

    def __init__(self, user_options: Optional[Mapping[str, Any]] = None):
        """
        Args:
            user_options: Option mapping with snake_case keys

        Raises:
            OptionsError: If a key is unknown or a value has the wrong type
        """
        self.user_options: Dict[str, Any] = dict(user_options or {})
        self._warned: Set[str] = set()
        self._validate()

    def _validate(self) -> None:
        unknown = set(self.user_options) - self.KNOWN_OPTIONS
        if unknown:
            raise OptionsError(f"Unknown option(s): {', '.join(sorted(unknown))}")

        for key, value in self.user_options.items():
            if value is None:
                continue

            if key in self.BOOL_OPTIONS and not isinstance(value, bool):
                raise OptionsError(f"Option '{key}' must be a boolean, got {type(value).__name__}")

            if key in self.LIST_OPTIONS:
                items = [value] if isinstance(value, str) else value
                if not isinstance(items, (list, tuple)) or not all(isinstance(i, str) for i in items):
                    raise OptionsError(f"Option '{key}' must be a string or a list of strings")

            if key in self.STRING_OPTIONS and not isinstance(value, str):
                raise OptionsError(f"Option '{key}' must be a string")

            if key == "import_hook" and not callable(value):
                raise OptionsError("Option 'import_hook' must be callable")

    def pending_warnings(self) -> List[str]:
        """Return deprecation warnings that have not been reported yet.

        Each deprecated key is reported at most once per resolver.
        """
        messages = []
        for key, message in DEPRECATED_OPTIONS.items():
            if key in self.user_options and key not in self._warned:
                self._warned.add(key)
                messages.append(message)
        return messages

    def _get(self, key: str, default: Any) -> Any:
        value = self.user_options.get(key)
        return default if value is None else value

    def _get_list(self, key: str, default: List[str]) -> List[str]:
        value = self._get(key, default)
        if isinstance(value, str):
            return [value]
        return list(value)

    def resolve(self, watch_mode: bool = False) -> BuildOptions:
        """
        Produce the options for one build.

        Args:
            watch_mode: Whether the bundler runs in watch mode. Unset `debug`
                and `watch` options follow it.

        Returns:
            Fully populated BuildOptions
        """
        return BuildOptions(
            debug=self._get("debug", watch_mode),
            watch=self._get("watch", watch_mode),
            cargo_args=self._get_list("cargo_args", []),
            wasm_opt_args=self._get_list("wasm_opt_args", DEFAULT_WASM_OPT_ARGS),
            inline_wasm=self._get("inline_wasm", False),
            nodejs=self._get("nodejs", False),
            out_dir=self.user_options.get("out_dir"),
            import_hook=self._get("import_hook", default_import_hook),
            server_path=self._get("server_path", ""),
            verbose=self._get("verbose", False),
            include=self._get_list("include", []),
            exclude=self._get_list("exclude", []),
            watch_patterns=self._get_list("watch_patterns", DEFAULT_WATCH_PATTERNS),
        )
