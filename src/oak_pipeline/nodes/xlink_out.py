"""
XLinkOut sink: exposes a node output to the host under a stream name
"""

from ..core.node import SinkNode


class XLinkOutNode(SinkNode):
    """Host output stream"""

    def _validate_config(self):
        stream_name = self.config["stream_name"]
        if not isinstance(stream_name, str) or not stream_name:
            raise ValueError(f"Stream name must be a non-empty string: {stream_name!r}")

    def set_stream_name(self, stream_name: str):
        self.set_config({"stream_name": stream_name})
