"""
Camera source nodes: color camera and mono (grayscale) camera
"""

from enum import Enum
from typing import Dict, Any, Optional, Tuple
from ..core.node import SourceNode


class BoardSocket(Enum):
    """Physical camera socket on the device board"""
    RGB = "rgb"
    LEFT = "left"
    RIGHT = "right"


class ColorResolution(Enum):
    """Color sensor resolution, value is (width, height)"""
    THE_1080_P = (1920, 1080)


class MonoResolution(Enum):
    """Mono sensor resolution, value is (width, height)"""
    THE_720_P = (1280, 720)


class ColorOrder(Enum):
    """Channel order of color frames"""
    BGR = "bgr"
    RGB = "rgb"


class ColorCameraNode(SourceNode):
    """Color camera with a downscaled preview output"""

    def __init__(self, node_id: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(node_id, config)

        self.output_ports = ["preview"]

    def _apply_defaults(self):
        self.config.setdefault("board_socket", BoardSocket.RGB)
        self.config.setdefault("resolution", ColorResolution.THE_1080_P)
        self.config.setdefault("preview_size", (300, 300))
        self.config.setdefault("interleaved", True)
        self.config.setdefault("color_order", ColorOrder.BGR)

    def _validate_config(self):
        width, height = self.config["preview_size"]
        if width <= 0 or height <= 0:
            raise ValueError(f"Preview size must be positive: {self.config['preview_size']}")

        if not isinstance(self.config["resolution"], ColorResolution):
            raise ValueError(f"Unsupported color resolution: {self.config['resolution']}")

        if not isinstance(self.config["color_order"], ColorOrder):
            raise ValueError(f"Unsupported color order: {self.config['color_order']}")

    def output_spec(self, port: str, upstream: Dict[str, Tuple[tuple, str]]) -> Tuple[tuple, str]:
        if port == "preview":
            width, height = self.config["preview_size"]
            if self.config["interleaved"]:
                return (height, width, 3), "uint8"
            return (3, height, width), "uint8"
        return super().output_spec(port, upstream)


class MonoCameraNode(SourceNode):
    """Grayscale camera, one of the stereo pair"""

    def __init__(self, node_id: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(node_id, config)

        self.output_ports = ["out"]

    def _apply_defaults(self):
        self.config.setdefault("board_socket", BoardSocket.LEFT)
        self.config.setdefault("resolution", MonoResolution.THE_720_P)

    def _validate_config(self):
        if not isinstance(self.config["resolution"], MonoResolution):
            raise ValueError(f"Unsupported mono resolution: {self.config['resolution']}")

        if self.config["board_socket"] not in (BoardSocket.LEFT, BoardSocket.RIGHT):
            raise ValueError(f"Mono camera must sit on LEFT or RIGHT socket: {self.config['board_socket']}")

    def output_spec(self, port: str, upstream: Dict[str, Tuple[tuple, str]]) -> Tuple[tuple, str]:
        if port == "out":
            width, height = self.config["resolution"].value
            return (height, width), "uint8"
        return super().output_spec(port, upstream)
