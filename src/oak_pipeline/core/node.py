"""
Node base classes: the common interface of every device pipeline node.

A node is a typed unit (source, processing, sink) with named input and output
ports. Configuration is applied through ``set_config`` before the node is
linked; the device runtime only ever sees the finished configuration.
"""

import logging
from abc import ABC
from enum import Enum
from typing import Dict, Any, Optional, List, Tuple


class NodeType(Enum):
    """Node type"""
    SOURCE = "source"
    PROCESSING = "processing"
    SINK = "sink"


class NodeStatus(Enum):
    """Node lifecycle status"""
    CREATED = "created"
    LINKED = "linked"


class Node(ABC):
    """Device pipeline node base class"""

    def __init__(
        self,
        node_id: str,
        node_type: NodeType,
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the node

        Args:
            node_id: unique node id within its pipeline
            node_type: node type
            config: initial configuration, merged over the node defaults
        """
        self.node_id = node_id
        self.node_type = node_type
        self.config: Dict[str, Any] = {}
        self.status = NodeStatus.CREATED

        self.input_ports: List[str] = []
        self.output_ports: List[str] = []

        self.logger = logging.getLogger(f"{self.__class__.__name__}_{node_id}")

        self._apply_defaults()
        if config:
            self.config.update(config)
        self._validate_config()

    def _apply_defaults(self):
        """Populate default configuration"""
        pass

    def _validate_config(self):
        """Validate configuration, raising ValueError on bad values"""
        pass

    def set_config(self, config: Dict[str, Any]):
        """
        Update configuration

        Reconfiguring a node that is already linked is not supported by the
        device runtime; the change is applied but a warning is logged.
        """
        if self.status == NodeStatus.LINKED:
            self.logger.warning(f"Node {self.node_id} reconfigured after linking: {sorted(config)}")
        self.config.update(config)
        self._validate_config()

    def get_config(self) -> Dict[str, Any]:
        """Return a copy of the configuration"""
        return self.config.copy()

    def mark_linked(self):
        self.status = NodeStatus.LINKED

    def output_spec(self, port: str, upstream: Dict[str, Tuple[tuple, str]]) -> Tuple[tuple, str]:
        """
        Describe the frames produced on an output port

        Args:
            port: output port name
            upstream: frame specs of the linked input ports, keyed by port

        Returns:
            (shape, dtype name)
        """
        raise NotImplementedError(f"{self.__class__.__name__} has no output port {port}")

    def get_input_ports(self) -> List[str]:
        return self.input_ports.copy()

    def get_output_ports(self) -> List[str]:
        return self.output_ports.copy()

    def has_input_port(self, port_name: str) -> bool:
        return port_name in self.input_ports

    def has_output_port(self, port_name: str) -> bool:
        return port_name in self.output_ports

    def to_dict(self) -> Dict[str, Any]:
        config = {}
        for key, value in self.config.items():
            if isinstance(value, Enum):
                value = value.name
            elif isinstance(value, tuple):
                value = list(value)
            config[key] = value
        return {
            "kind": self.__class__.__name__,
            "node_type": self.node_type.value,
            "config": config
        }

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(id={self.node_id}, "
                f"type={self.node_type.value}, "
                f"status={self.status.value})")


class SourceNode(Node):
    """Source node base class (cameras)"""

    def __init__(self, node_id: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(node_id=node_id, node_type=NodeType.SOURCE, config=config)


class ProcessingNode(Node):
    """Processing node base class"""

    def __init__(self, node_id: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(node_id=node_id, node_type=NodeType.PROCESSING, config=config)


class SinkNode(Node):
    """Sink node base class"""

    def __init__(self, node_id: str, config: Optional[Dict[str, Any]] = None):
        super().__init__(node_id=node_id, node_type=NodeType.SINK, config=config)

        self.input_ports = ["input"]

    def _apply_defaults(self):
        # sinks publish under their node id unless renamed
        self.config.setdefault("stream_name", self.node_id)
