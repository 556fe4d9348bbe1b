"""
Stereo pipeline: mono pair, optional stereo depth, host streams

Topology depends on the requested streams:

* no depth stream requested: each mono camera feeds its ``left``/``right``
  stream directly;
* any of ``disparity``/``depth``/``disparity_color`` requested: both cameras
  feed the stereo node, and ``left``/``right`` publish the stereo node's
  synchronized copies together with ``disparity`` and ``depth``
  (plus the rectified pair when requested).
"""

import logging
from typing import Any, Optional
from ..core.config import StereoConfig
from ..core.pipeline import Pipeline
from ..nodes import MonoCameraNode, StereoDepthNode, XLinkOutNode, BoardSocket, MonoResolution
from .streams import LEFT, RIGHT, DISPARITY, DEPTH, RECTIFIED_LEFT, RECTIFIED_RIGHT

logger = logging.getLogger(__name__)


def build_stereo(config: Any, pipeline: Optional[Pipeline] = None) -> Pipeline:
    """
    Build the stereo pipeline

    Args:
        config: configuration tree with "depth" and "streams" sections
        pipeline: pipeline to build into, a fresh one by default

    Returns:
        the assembled pipeline

    Raises:
        MissingSection, MissingField: before any node is created
    """
    settings = StereoConfig.from_tree(config)
    flags = settings.flags
    # rectified outputs only exist on the stereo node
    rectified = flags.with_depth and flags.output_rectified

    logger.debug(
        f"Stereo flags: depth={flags.with_depth}, rectified={flags.output_rectified}, "
        f"max_disparity={settings.max_disparity}"
    )

    pipeline = pipeline if pipeline is not None else Pipeline("stereo")

    mono_left = pipeline.create(MonoCameraNode, "mono_left")
    mono_right = pipeline.create(MonoCameraNode, "mono_right")
    stereo = pipeline.create(StereoDepthNode, "stereo") if flags.with_depth else None

    xout_left = pipeline.create(XLinkOutNode, "xout_left")
    xout_right = pipeline.create(XLinkOutNode, "xout_right")
    xout_left.set_stream_name(LEFT)
    xout_right.set_stream_name(RIGHT)

    if flags.with_depth:
        pipeline.create(XLinkOutNode, "xout_disparity").set_stream_name(DISPARITY)
        pipeline.create(XLinkOutNode, "xout_depth").set_stream_name(DEPTH)
    if rectified:
        pipeline.create(XLinkOutNode, "xout_rectified_left").set_stream_name(RECTIFIED_LEFT)
        pipeline.create(XLinkOutNode, "xout_rectified_right").set_stream_name(RECTIFIED_RIGHT)

    mono_left.set_config({"resolution": MonoResolution.THE_720_P, "board_socket": BoardSocket.LEFT})
    mono_right.set_config({"resolution": MonoResolution.THE_720_P, "board_socket": BoardSocket.RIGHT})

    if stereo is not None:
        stereo.set_config({
            "output_depth": flags.output_depth,
            "output_rectified": flags.output_rectified,
            "confidence_threshold": 200,
            "rectify_edge_fill_color": 0,  # black, to better see the cutout
            "left_right_check": settings.lrcheck,
            "extended_disparity": settings.extended,
            "subpixel": settings.subpixel
        })

        # cameras -> stereo -> host
        pipeline.link("mono_left", "out", "stereo", "left")
        pipeline.link("mono_right", "out", "stereo", "right")

        pipeline.link("stereo", "synced_left", "xout_left")
        pipeline.link("stereo", "synced_right", "xout_right")
        if rectified:
            pipeline.link("stereo", "rectified_left", "xout_rectified_left")
            pipeline.link("stereo", "rectified_right", "xout_rectified_right")
        pipeline.link("stereo", "disparity", "xout_disparity")
        pipeline.link("stereo", "depth", "xout_depth")
    else:
        # cameras -> host
        pipeline.link("mono_left", "out", "xout_left")
        pipeline.link("mono_right", "out", "xout_right")

    return pipeline
