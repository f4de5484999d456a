"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/cargowasm/cargowasm"
KEYWORDS = "rust wasm webassembly cargo wasm-bindgen bundler plugin rollup"
HERE = os.path.dirname(os.path.abspath(__file__))


if __name__ == "__main__":
    setup(
        name="cargowasm",
        version="0.3.0",
        description="Compile Cargo crates to WebAssembly inside a JavaScript bundler's build graph",
        keywords=KEYWORDS,
        url=URL,
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        python_requires=">=3.11",
        install_requires=[
            "requests>=2.28",
            "tqdm>=4.64",
        ],
        extras_require={
            "test": ["pytest>=7.0"],
        },
        entry_points={
            "console_scripts": ["cargowasm=cargowasm.cli:main"],
        },
        include_package_data=True)
