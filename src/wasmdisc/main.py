#!/usr/bin/env python3
"""
CLI for scaffolding wasm modules and packaging them into ISO images,
with the volume label patched in after the image is mastered.
"""
import argparse
import logging
import pathlib
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .config import load_settings
from .constants import DEFAULT_OUTPUT_ROOT
from .errors import ExternalToolFailed, WasmDiscError
from .iso import BACKENDS, list_files
from .models import BuildProfile, BuildRequest
from .patch import read_label
from .pipeline import build
from .scaffold import new_project

LOG_FILENAME = "wasmdisc.log"
OUTPUT_TAIL_LINES = 40


def init_logging(verbose: bool, log_dir: Optional[pathlib.Path] = None):
    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s | %(levelname)s | %(message)s"
    datefmt = "%H:%M:%S"
    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt=datefmt,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(log_dir / LOG_FILENAME, maxBytes=5_000_000, backupCount=3)
        fh.setFormatter(logging.Formatter(fmt, datefmt))
        logging.getLogger().addHandler(fh)


def _report_tool_output(log: logging.Logger, err: ExternalToolFailed):
    lines = err.output.splitlines()
    if not lines:
        return
    log.error("Last %d line(s) of %s output:", min(len(lines), OUTPUT_TAIL_LINES), err.tool)
    for line in lines[-OUTPUT_TAIL_LINES:]:
        log.error("  %s", line)


def cmd_new(args) -> int:
    init_logging(args.verbose)
    new_project(args.name, pathlib.Path(args.path))
    return 0


def cmd_build(args) -> int:
    # input errors are reported before anything is written under the output root
    init_logging(args.verbose)
    profile = BuildProfile.parse(args.profile)

    overrides = {}
    if args.generator is not None:
        overrides["GENERATOR"] = args.generator
    if args.timeout is not None:
        overrides["TIMEOUT"] = args.timeout
    if args.skip_install:
        overrides["SKIP_INSTALL"] = True
    settings = load_settings(**overrides)

    out = pathlib.Path(args.outpath)
    init_logging(args.verbose, out)
    log = logging.getLogger(__name__)

    request = BuildRequest(
        input_path=pathlib.Path(args.inpath),
        output_root=out,
        profile=profile,
        disc_label=args.label,
    )
    outcome = build(request, settings)
    log.info("Done: %s (label %r)", outcome.image_path, outcome.label)
    return 0


def cmd_inspect(args) -> int:
    init_logging(args.verbose)
    log = logging.getLogger(__name__)
    image = pathlib.Path(args.image)
    log.info("Volume label: %r", read_label(image))
    for path, size in sorted(list_files(image).items()):
        log.info("  %s (%d bytes)", path, size)
    return 0


def make_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    parser = argparse.ArgumentParser(
        prog="wasmdisc",
        description="Build wasm modules into labelled ISO images",
    )
    sub = parser.add_subparsers(dest="action", required=True)

    p_new = sub.add_parser("new", parents=[common], help="Scaffold a new wasm crate")
    p_new.add_argument("name", help="Crate name")
    p_new.add_argument("--path", default=".", help="Directory to scaffold into")
    p_new.set_defaults(func=cmd_new)

    p_build = sub.add_parser("build", parents=[common], help="Compile a crate and package it as an ISO")
    p_build.add_argument("inpath", help="Crate directory (holding Cargo.toml)")
    p_build.add_argument("-o", "--outpath", default=DEFAULT_OUTPUT_ROOT, help="Output directory")
    p_build.add_argument(
        "-p", "--profile", default=BuildProfile.DEBUG.value, help="debug or release"
    )
    p_build.add_argument("-l", "--label", default=None, help="Volume label (max 32 ASCII bytes)")
    p_build.add_argument(
        "--generator",
        choices=BACKENDS,
        default=None,
        help="Image backend (default: mkisofs-rs, or WASMDISC_GENERATOR)",
    )
    p_build.add_argument(
        "--timeout", type=float, default=None, help="Per-tool timeout in seconds"
    )
    p_build.add_argument(
        "--skip-install", action="store_true", help="Do not run cargo install for mkisofs-rs"
    )
    p_build.set_defaults(func=cmd_build)

    p_inspect = sub.add_parser("inspect", parents=[common], help="Show the volume label and files of an ISO")
    p_inspect.add_argument("image", help="Path to the ISO")
    p_inspect.set_defaults(func=cmd_inspect)

    return parser


def main(argv=None) -> int:
    args = make_parser().parse_args(argv)
    log = logging.getLogger(__name__)
    try:
        return args.func(args)
    except ExternalToolFailed as e:
        log.error("%s", e)
        _report_tool_output(log, e)
        return 1
    except WasmDiscError as e:
        log.error("%s", e)
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted")
        return 130
    except Exception:
        log.exception("Build failed")
        raise


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
