"""
Detection pipeline (MobileNet-SSD): color camera -> [neural network, host], neural network -> host
"""

from typing import Any, Optional
from ..core.config import DetectionConfig
from ..core.pipeline import Pipeline
from ..nodes import ColorCameraNode, NeuralNetworkNode, XLinkOutNode, ColorResolution, ColorOrder
from .streams import PREVIEW, DETECTIONS


def build_detection(config: Any, pipeline: Optional[Pipeline] = None) -> Pipeline:
    """
    Build the detection pipeline

    Args:
        config: configuration tree with an "ai" section holding "blob_file"
        pipeline: pipeline to build into, a fresh one by default

    Returns:
        the assembled pipeline
    """
    settings = DetectionConfig.from_tree(config)

    pipeline = pipeline if pipeline is not None else Pipeline("mobilenet_ssd")

    color_cam = pipeline.create(ColorCameraNode, "color_cam")
    xout_color = pipeline.create(XLinkOutNode, "xout_preview")
    nn = pipeline.create(NeuralNetworkNode, "nn")
    xout_nn = pipeline.create(XLinkOutNode, "xout_detections")

    nn.set_config({"blob_path": settings.blob_file})

    xout_color.set_stream_name(PREVIEW)
    xout_nn.set_stream_name(DETECTIONS)

    # planar BGR, the layout the network expects
    color_cam.set_config({
        "preview_size": (300, 300),
        "resolution": ColorResolution.THE_1080_P,
        "interleaved": False,
        "color_order": ColorOrder.BGR
    })

    # camera -> nn -> host, camera preview also to host
    pipeline.link("color_cam", "preview", "nn", "input")
    pipeline.link("color_cam", "preview", "xout_preview")
    pipeline.link("nn", "out", "xout_detections")

    return pipeline
