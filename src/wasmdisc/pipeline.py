"""
The build pipeline: manifest -> cargo -> layout -> image -> volume label.

Each stage raises on failure, so a stage only runs once everything before
it succeeded.
"""
from __future__ import annotations

import logging
from typing import Optional

from . import assemble, iso, manifest, patch, toolchain
from .config import Settings, load_settings
from .models import BuildOutcome, BuildRequest

LOG = logging.getLogger(__name__)


def build(request: BuildRequest, settings: Optional[Settings] = None) -> BuildOutcome:
    settings = settings or load_settings()

    project = manifest.resolve(request.input_path)
    label = request.label_for(project)
    # reject a bad label before any external tool runs
    patch.validate_label(label)

    if settings.GENERATOR == iso.BACKEND_MKISOFS and not settings.SKIP_INSTALL:
        iso.ensure_generator(settings)

    toolchain.invoke(
        request.input_path,
        request.profile,
        cargo=settings.CARGO_BIN,
        timeout=settings.TIMEOUT,
    )

    layout = assemble.assemble(
        request.input_path,
        request.output_root,
        request.profile,
        project.artifact_name,
    )

    image_path = iso.build_image(layout.root, request.image_path, settings)
    patch.patch_label(image_path, label)

    LOG.info("ISO created at %s", image_path)
    return BuildOutcome(manifest=project, layout=layout, image_path=image_path, label=label)
