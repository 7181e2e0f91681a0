import os

from setuptools import setup

ext_modules = []

# Compiling with mypyc is opt-in: QUADINT_USE_MYPYC=1 pip install .
#   The pure python package is what gets installed otherwise, and it is what the
#   tests run against unless they are told a compiled build is expected.
if os.environ.get("QUADINT_USE_MYPYC") == "1":
    from mypyc.build import mypycify

    ext_modules = mypycify([
        "quadint/errors.py",
        "quadint/utils.py",
        "quadint/ring.py",
        "quadint/quad.py",
        "quadint/calculator.py",
    ])

setup(
    name="quadint",
    version="0.1.0",
    packages=["quadint"],
    python_requires=">=3.9",

    install_requires=[
        "sympy",
    ],
    extras_require={
        "test": ["pytest"],
        "mypyc": ["mypy"],
    },

    ext_modules=ext_modules,

    license="MIT",
)
