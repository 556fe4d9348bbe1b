"""
Neural network inference node
"""

from typing import Dict, Any, Optional, Tuple
from ..core.node import ProcessingNode


class NeuralNetworkNode(ProcessingNode):
    """Runs a compiled model blob on its input frames"""

    def __init__(self, node_id: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(node_id, config)

        self.input_ports = ["input"]
        self.output_ports = ["out"]

    def _apply_defaults(self):
        self.config.setdefault("blob_path", None)
        # MobileNet-SSD: 100 detections x [image_id, label, conf, x_min, y_min, x_max, y_max]
        self.config.setdefault("output_size", 700)

    def _validate_config(self):
        blob_path = self.config["blob_path"]
        if blob_path is not None and (not isinstance(blob_path, str) or not blob_path):
            raise ValueError(f"Blob path must be a non-empty string: {blob_path!r}")

        if self.config["output_size"] <= 0:
            raise ValueError(f"Output size must be positive: {self.config['output_size']}")

    def output_spec(self, port: str, upstream: Dict[str, Tuple[tuple, str]]) -> Tuple[tuple, str]:
        if self.config["blob_path"] is None:
            raise ValueError(f"Neural network {self.node_id} has no blob path")
        if port == "out":
            return (self.config["output_size"],), "float16"
        return super().output_spec(port, upstream)
