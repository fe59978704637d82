"""
Shared pytest fixtures for wasmdisc tests.

No test needs cargo or mkisofs-rs: crates are laid out on disk with a
pre-built ``.wasm`` in the place cargo would leave it, ISO images are
mastered with pycdlib, and the external tools are replaced through the
``fake_tools`` fixture.
"""
import io
import textwrap
from pathlib import Path

import pycdlib
import pytest

from wasmdisc import iso as iso_mod
from wasmdisc import toolchain
from wasmdisc.constants import TARGET_TRIPLE
from wasmdisc.process import ToolResult

WASM_DEBUG = b"\x00asm\x01\x00\x00\x00debug"
WASM_RELEASE = b"\x00asm\x01\x00\x00\x00release"

CONTENT_FILES = {
    "readme.txt": b"hello disc\n",
    "images/logo.bin": bytes(range(256)),
    "levels/one/map.dat": b"\x01\x02\x03",
}


def write_manifest(root: Path, name: str, lib_name: str = None) -> Path:
    text = textwrap.dedent(f"""\
        [package]
        name = "{name}"
        version = "1.0.0"

        [lib]
        crate-type = ["cdylib"]
    """)
    if lib_name is not None:
        text += f'name = "{lib_name}"\n'
    path = root / "Cargo.toml"
    path.write_text(text, encoding="utf-8")
    return path


def write_artifact(root: Path, profile: str, artifact: str, data: bytes) -> Path:
    path = root / "target" / TARGET_TRIPLE / profile / f"{artifact}.wasm"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@pytest.fixture
def crate(tmp_path):
    """A "my-mod" crate with debug and release artifacts and no content/."""
    root = tmp_path / "my-mod"
    root.mkdir()
    write_manifest(root, "my-mod")
    write_artifact(root, "debug", "my_mod", WASM_DEBUG)
    write_artifact(root, "release", "my_mod", WASM_RELEASE)
    return root


@pytest.fixture
def crate_with_content(crate):
    for rel, data in CONTENT_FILES.items():
        path = crate / "content" / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return crate


@pytest.fixture
def iso_image(tmp_path):
    """A small pycdlib-mastered ISO whose volume identifier is 'CDROM'."""
    path = tmp_path / "plain.iso"
    iso = pycdlib.PyCdlib()
    iso.new(vol_ident="CDROM")
    data = b"foo\n"
    iso.add_fp(io.BytesIO(data), len(data), "/FOO.;1")
    iso.write(str(path))
    iso.close()
    return path


class FakeTools:
    """Records external tool calls; mkisofs-rs is emulated with pycdlib."""

    def __init__(self):
        self.calls = []
        self.fail = {}

    def run(self, args, failure=None, cwd=None, timeout=None):
        args = [str(a) for a in args]
        self.calls.append(args)
        tool = args[0]
        if tool in self.fail:
            raise failure(tool, exit_code=self.fail[tool], output="boom\n")
        if args[:2] == ["mkisofs-rs", "--no-boot"]:
            out, src = Path(args[3]), Path(args[4])
            iso_mod.write_iso(src, out)
        return ToolResult(args=args, exit_code=0, output="")

    def tools_called(self):
        return [c[:2] for c in self.calls]


@pytest.fixture
def fake_tools(monkeypatch):
    tools = FakeTools()
    monkeypatch.setattr(toolchain, "run_tool", tools.run)
    monkeypatch.setattr(iso_mod, "run_tool", tools.run)
    return tools
