#!/usr/bin/env python
"""Run wasmdisc without installing the package (adds src/ to sys.path)."""

import sys
import pathlib

root = pathlib.Path(__file__).resolve().parent
sys.path.insert(0, str(root / "src"))

from wasmdisc.main import cli

if __name__ == "__main__":
    cli()
