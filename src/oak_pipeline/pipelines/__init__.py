"""
Pipeline builders and the configuration entry point

``configure_pipeline`` runs one builder against a configuration tree and
returns a ``BuildResult``: configuration errors are logged and reported in
the result, the assembled pipeline is validated and optionally handed to a
device runtime. Any other failure propagates to the caller.
"""

import logging
from typing import Any, Callable, Dict

from ..core.config import MissingSection, MissingField
from ..core.pipeline import Pipeline
from ..core.result import BuildResult
from .preview import build_preview
from .stereo import build_stereo
from .detection import build_detection
from . import streams

logger = logging.getLogger(__name__)

PIPELINE_BUILDERS: Dict[str, Callable[..., Pipeline]] = {
    "preview": build_preview,
    "stereo": build_stereo,
    "mobilenet_ssd": build_detection,
    "detection": build_detection,
}


def configure_pipeline(name: str, config: Any = None, runtime=None) -> BuildResult:
    """
    Build a named pipeline

    Args:
        name: builder name, see PIPELINE_BUILDERS
        config: parsed configuration tree
        runtime: optional DeviceRuntime the finished pipeline is started on

    Returns:
        BuildResult with the pipeline, or the configuration error kind and detail

    Raises:
        KeyError: unknown pipeline name
        RuntimeError: the assembled pipeline failed validation
    """
    if name not in PIPELINE_BUILDERS:
        raise KeyError(f"Unknown pipeline: {name} (available: {sorted(PIPELINE_BUILDERS)})")

    try:
        pipeline = PIPELINE_BUILDERS[name](config)
    except (MissingSection, MissingField) as e:
        logger.error(str(e))
        return BuildResult.failure(e)

    if not pipeline.validate():
        raise RuntimeError(f"Assembled {name} pipeline is invalid")

    if runtime is not None:
        runtime.start(pipeline)

    logger.info(f"Initialized {name} pipeline.")
    return BuildResult.success(pipeline)


__all__ = [
    'PIPELINE_BUILDERS',
    'configure_pipeline',
    'build_preview', 'build_stereo', 'build_detection',
    'streams'
]
