"""
Preview pipeline: color camera -> host
"""

from typing import Any, Optional
from ..core.pipeline import Pipeline
from ..nodes import ColorCameraNode, XLinkOutNode, ColorResolution
from .streams import PREVIEW


def build_preview(config: Any = None, pipeline: Optional[Pipeline] = None) -> Pipeline:
    """
    Build the preview pipeline

    Args:
        config: ignored, the preview pipeline is not configurable
        pipeline: pipeline to build into, a fresh one by default

    Returns:
        the assembled pipeline
    """
    pipeline = pipeline if pipeline is not None else Pipeline("preview")

    color_cam = pipeline.create(ColorCameraNode, "color_cam")
    xout_color = pipeline.create(XLinkOutNode, "xout_preview")

    xout_color.set_stream_name(PREVIEW)

    color_cam.set_config({
        "preview_size": (300, 300),
        "resolution": ColorResolution.THE_1080_P,
        "interleaved": True
    })

    pipeline.link("color_cam", "preview", "xout_preview")

    return pipeline
