"""
test_pipeline: end-to-end build with cargo and mkisofs-rs faked.

The fake mkisofs-rs masters a real image with pycdlib, so the label patch
and the final layout are checked against actual ISO bytes.
"""
import pytest

from wasmdisc.config import Settings
from wasmdisc.constants import VOLUME_ID_LEN, VOLUME_ID_OFFSET
from wasmdisc.errors import (
    ArtifactNotFound,
    BuildFailed,
    DependencyUnavailable,
    ImageGenFailed,
    InvalidConfig,
    InvalidLabel,
    MissingManifest,
)
from wasmdisc.iso import list_files
from wasmdisc.models import BuildProfile, BuildRequest
from wasmdisc.patch import read_label
from wasmdisc.pipeline import build

from conftest import CONTENT_FILES, WASM_DEBUG, WASM_RELEASE


def _volume_field(path):
    with open(path, "rb") as f:
        f.seek(VOLUME_ID_OFFSET)
        return f.read(VOLUME_ID_LEN)


class TestBuild:

    def test_default_label_is_artifact_name(self, crate, fake_tools, tmp_path):
        out = tmp_path / "build"
        outcome = build(BuildRequest(input_path=crate, output_root=out), Settings())

        assert outcome.image_path == out / "debug.iso"
        assert outcome.label == "my_mod"
        assert _volume_field(outcome.image_path) == b"my_mod" + b" " * 26
        assert (out / "debug" / "main.wasm").read_bytes() == WASM_DEBUG

    def test_stage_order(self, crate, fake_tools, tmp_path):
        build(BuildRequest(input_path=crate, output_root=tmp_path / "b"), Settings())
        assert fake_tools.tools_called() == [
            ["cargo", "install"],
            ["cargo", "build"],
            ["mkisofs-rs", "--no-boot"],
        ]

    def test_release_profile(self, crate, fake_tools, tmp_path):
        out = tmp_path / "build"
        outcome = build(
            BuildRequest(input_path=crate, output_root=out, profile=BuildProfile.RELEASE),
            Settings(),
        )
        assert outcome.image_path == out / "release.iso"
        assert (out / "release" / "main.wasm").read_bytes() == WASM_RELEASE
        assert fake_tools.calls[1][-1] == "--release"

    def test_custom_label(self, crate, fake_tools, tmp_path):
        outcome = build(
            BuildRequest(input_path=crate, output_root=tmp_path / "b", disc_label="GAME_DISC"),
            Settings(),
        )
        assert read_label(outcome.image_path) == "GAME_DISC"

    def test_content_lands_on_disc(self, crate_with_content, fake_tools, tmp_path):
        outcome = build(
            BuildRequest(input_path=crate_with_content, output_root=tmp_path / "b"),
            Settings(),
        )
        files = list_files(outcome.image_path)
        assert files["/main.wasm"] == len(WASM_DEBUG)
        for rel, data in CONTENT_FILES.items():
            assert files[f"/content/{rel}"] == len(data)

    def test_rebuild_overwrites(self, crate, fake_tools, tmp_path):
        request = BuildRequest(input_path=crate, output_root=tmp_path / "b", disc_label="ONE")
        build(request, Settings())
        outcome = build(
            BuildRequest(input_path=crate, output_root=tmp_path / "b", disc_label="TWO"),
            Settings(),
        )
        assert read_label(outcome.image_path) == "TWO"

    def test_pycdlib_backend_skips_install(self, crate, fake_tools, tmp_path):
        outcome = build(
            BuildRequest(input_path=crate, output_root=tmp_path / "b"),
            Settings(GENERATOR="pycdlib"),
        )
        assert fake_tools.tools_called() == [["cargo", "build"]]
        assert read_label(outcome.image_path) == "my_mod"

    def test_skip_install(self, crate, fake_tools, tmp_path):
        build(BuildRequest(input_path=crate, output_root=tmp_path / "b"), Settings(SKIP_INSTALL=True))
        assert ["cargo", "install"] not in fake_tools.tools_called()


class TestBuildFailures:

    def test_missing_manifest_runs_nothing(self, fake_tools, tmp_path):
        with pytest.raises(MissingManifest):
            build(BuildRequest(input_path=tmp_path), Settings())
        assert fake_tools.calls == []

    def test_bad_generator_env_runs_nothing(self, crate, fake_tools, monkeypatch, tmp_path):
        monkeypatch.setenv("WASMDISC_GENERATOR", "xorriso")
        with pytest.raises(InvalidConfig):
            build(BuildRequest(input_path=crate, output_root=tmp_path / "b"))
        assert fake_tools.calls == []

    def test_label_too_long_runs_nothing(self, crate, fake_tools, tmp_path):
        with pytest.raises(InvalidLabel):
            build(
                BuildRequest(input_path=crate, output_root=tmp_path / "b", disc_label="Z" * 33),
                Settings(),
            )
        assert fake_tools.calls == []

    def test_install_failure_stops_build(self, crate, fake_tools, tmp_path):
        fake_tools.fail["cargo"] = 101
        with pytest.raises(DependencyUnavailable):
            build(BuildRequest(input_path=crate, output_root=tmp_path / "b"), Settings())
        assert len(fake_tools.calls) == 1

    def test_compile_failure_stops_build(self, crate, fake_tools, tmp_path):
        fake_tools.fail["cargo"] = 101
        with pytest.raises(BuildFailed) as exc:
            build(
                BuildRequest(input_path=crate, output_root=tmp_path / "b"),
                Settings(SKIP_INSTALL=True),
            )
        assert exc.value.exit_code == 101
        assert not (tmp_path / "b" / "debug").exists()

    def test_artifact_not_found(self, crate, fake_tools, tmp_path):
        (crate / "Cargo.toml").write_text('[package]\nname = "renamed"\n', encoding="utf-8")
        with pytest.raises(ArtifactNotFound):
            build(BuildRequest(input_path=crate, output_root=tmp_path / "b"), Settings())
        assert ["mkisofs-rs", "--no-boot"] not in fake_tools.tools_called()

    def test_image_failure(self, crate, fake_tools, tmp_path):
        fake_tools.fail["mkisofs-rs"] = 1
        with pytest.raises(ImageGenFailed):
            build(BuildRequest(input_path=crate, output_root=tmp_path / "b"), Settings())
        assert not (tmp_path / "b" / "debug.iso").exists()
