"""
Loader code generation.

The transform of Cargo.toml returns one of four ES module shapes:

    entry   + external binary: initialize the glue with the asset URL
    library + external binary: export an async factory that initializes and
                               returns the glue namespace
    entry   + inline binary:   same as entry, bytes decoded from base64
    library + inline binary:   same as library, bytes decoded from base64

Entry loaders catch initialization failures and log them with console.error.
Library factories let the rejection reach whoever called the factory.
"""

import base64
import json
import string
from typing import List, Optional

from ..config.options import BuildOptions

BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"

# Lowest and highest character codes in the alphabet ('+' and 'z')
BASE64_TABLE_OFFSET = ord("+")
BASE64_TABLE_END = ord("z")


def base64_lookup_table() -> List[int]:
    """Map `charCode - 43` to the 6-bit value; '=' and gaps map to 0."""
    table = [0] * (BASE64_TABLE_END - BASE64_TABLE_OFFSET + 1)
    for value, char in enumerate(BASE64_ALPHABET):
        table[ord(char) - BASE64_TABLE_OFFSET] = value
    return table


BASE64_DECODER = string.Template("""\
const base64codes = $table;

function getBase64Code(charCode) {
    return base64codes[charCode - $offset];
}

function base64_decode(str) {
    let missingOctets = str.endsWith("==") ? 2 : str.endsWith("=") ? 1 : 0;
    let n = str.length;
    let result = new Uint8Array(3 * (n / 4));
    let buffer;

    for (let i = 0, j = 0; i < n; i += 4, j += 3) {
        buffer =
            getBase64Code(str.charCodeAt(i)) << 18 |
            getBase64Code(str.charCodeAt(i + 1)) << 12 |
            getBase64Code(str.charCodeAt(i + 2)) << 6 |
            getBase64Code(str.charCodeAt(i + 3));
        result[j] = buffer >> 16;
        result[j + 1] = (buffer >> 8) & 0xFF;
        result[j + 2] = buffer & 0xFF;
    }

    return result.subarray(0, result.length - missingOctets);
}
""").substitute(table=json.dumps(base64_lookup_table()), offset=BASE64_TABLE_OFFSET)

NODEJS_PRELUDE = """\
function loadFile(url) {
    return new Promise((resolve, reject) => {
        require("fs").readFile(url, (err, data) => {
            if (err) {
                reject(err);

            } else {
                resolve(data);
            }
        });
    });
}
"""

ENTRY_INLINE = string.Template("""\
import init from $import_path;

$decoder
const wasm_code = base64_decode($payload);

init(wasm_code).catch(console.error);
""")

LIBRARY_INLINE = string.Template("""\
import * as exports from $import_path;

$decoder
const wasm_code = base64_decode($payload);

export default async () => {
    await exports.default(wasm_code);
    return exports;
};
""")

ENTRY_EXTERNAL = string.Template("""\
import init from $import_path;
$prelude
init($wasm_arg).catch(console.error);
""")

LIBRARY_EXTERNAL = string.Template(r"""import * as exports from $import_path;
$prelude
export default async (opt = {}) => {
    let {importHook, serverPath} = opt;

    let path = $wasm_url;

    if (serverPath != null) {
        path = serverPath + /[^\/\\]*$$/.exec(path)[0];
    }

    if (importHook != null) {
        path = importHook(path);
    }

    await exports.default($wasm_arg);
    return exports;
};
""")


class LoaderCodeGenerator:
    """Generates the JavaScript module that replaces Cargo.toml in the bundle."""

    def __init__(self, options: BuildOptions):
        self.options = options

    @staticmethod
    def encode_payload(wasm: bytes) -> str:
        """Base64 payload as a JavaScript string literal."""
        return json.dumps(base64.b64encode(wasm).decode("ascii"))

    def generate(
        self,
        wasm: bytes,
        import_path: str,
        is_entry: bool,
        wasm_url: Optional[str] = None
    ) -> str:
        """
        Generate loader source.

        Args:
            wasm: Final binary (embedded when inline_wasm is set)
            import_path: Specifier of the wasm-bindgen glue module
            is_entry: Whether Cargo.toml is a bundle entry point
            wasm_url: JavaScript expression for the asset URL (external mode)

        Returns:
            ES module source text

        Raises:
            ValueError: If external mode is used without wasm_url
        """
        quoted_import = json.dumps(import_path)

        if self.options.inline_wasm:
            template = ENTRY_INLINE if is_entry else LIBRARY_INLINE
            return template.substitute(
                import_path=quoted_import,
                decoder=BASE64_DECODER,
                payload=self.encode_payload(wasm),
            )

        if wasm_url is None:
            raise ValueError("wasm_url is required when the binary is not inlined")

        prelude = ""
        if self.options.nodejs:
            prelude = "\n" + NODEJS_PRELUDE

        if is_entry:
            return ENTRY_EXTERNAL.substitute(
                import_path=quoted_import,
                prelude=prelude,
                wasm_arg=self._load_expression(wasm_url),
            )

        return LIBRARY_EXTERNAL.substitute(
            import_path=quoted_import,
            prelude=prelude,
            wasm_url=wasm_url,
            wasm_arg=self._load_expression("path"),
        )

    def _load_expression(self, url_expression: str) -> str:
        if self.options.nodejs:
            return f"loadFile({url_expression})"
        return url_expression
