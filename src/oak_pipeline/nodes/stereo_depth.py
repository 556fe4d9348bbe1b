"""
Stereo depth node: disparity and depth from a left/right mono pair

Besides disparity and depth, the node forwards frame-synchronized copies of
its inputs (``synced_left``/``synced_right``) and, when enabled, the
rectified images.
"""

from typing import Dict, Any, Optional, Tuple
from ..core.node import ProcessingNode


class StereoDepthNode(ProcessingNode):
    """Stereo depth node"""

    def __init__(self, node_id: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(node_id, config)

        self.input_ports = ["left", "right"]
        self.output_ports = [
            "synced_left", "synced_right",
            "rectified_left", "rectified_right",
            "disparity", "depth"
        ]

    def _apply_defaults(self):
        self.config.setdefault("output_depth", False)
        self.config.setdefault("output_rectified", False)
        self.config.setdefault("confidence_threshold", 230)
        # -1 replicates the edge pixels, 0..255 fills with a constant gray level
        self.config.setdefault("rectify_edge_fill_color", -1)
        self.config.setdefault("left_right_check", False)
        self.config.setdefault("extended_disparity", False)
        self.config.setdefault("subpixel", False)

    def _validate_config(self):
        threshold = self.config["confidence_threshold"]
        if not 0 <= threshold <= 255:
            raise ValueError(f"Confidence threshold must be in [0, 255]: {threshold}")

        fill = self.config["rectify_edge_fill_color"]
        if not -1 <= fill <= 255:
            raise ValueError(f"Rectify edge fill color must be in [-1, 255]: {fill}")

        for key in ("output_depth", "output_rectified", "left_right_check", "extended_disparity", "subpixel"):
            if not isinstance(self.config[key], bool):
                raise ValueError(f"{key} must be a bool: {self.config[key]!r}")

    def output_spec(self, port: str, upstream: Dict[str, Tuple[tuple, str]]) -> Tuple[tuple, str]:
        if port in ("synced_left", "rectified_left"):
            return upstream["left"]
        if port in ("synced_right", "rectified_right"):
            return upstream["right"]

        shape, _ = upstream["left"]
        if port == "disparity":
            return shape, "uint16" if self.config["subpixel"] else "uint8"
        if port == "depth":
            return shape, "uint16"
        return super().output_spec(port, upstream)
