"""
Pipeline: the device data-flow graph under construction.

The pipeline is the arena that owns every node created during one build call.
Nodes are addressed by their string id; links go from one output port to one
input port, output ports may fan out, input ports accept a single link.
"""

import logging
from typing import Dict, List, Any, Optional, Tuple, Type
from collections import defaultdict, deque
from .node import Node, NodeType


class Pipeline:
    """Device pipeline graph"""

    def __init__(self, pipeline_id: str):
        """
        Initialize the pipeline

        Args:
            pipeline_id: pipeline identifier, used for logging
        """
        self.pipeline_id = pipeline_id

        # node arena, insertion order is creation order
        self.nodes: Dict[str, Node] = {}
        self.node_order: List[str] = []

        # "node:port" -> ["node:port", ...]
        self.connections: Dict[str, List[str]] = defaultdict(list)
        # "node:port" -> "node:port", one source per input port
        self.reverse_connections: Dict[str, str] = {}

        self.logger = logging.getLogger(f"Pipeline_{pipeline_id}")

        self._is_validated = False

    def create(self, node_cls: Type[Node], node_id: str, **kwargs) -> Node:
        """
        Create a node owned by this pipeline

        Args:
            node_cls: node class
            node_id: unique node id
            **kwargs: forwarded to the node constructor

        Returns:
            the created node
        """
        node = node_cls(node_id, **kwargs)
        self.add_node(node)
        return node

    def add_node(self, node: Node):
        if node.node_id in self.nodes:
            raise ValueError(f"Node {node.node_id} already exists in pipeline {self.pipeline_id}")

        self.nodes[node.node_id] = node
        self.node_order.append(node.node_id)
        self._is_validated = False

        self.logger.debug(f"Created node: {node!r}")

    def link(self, from_node_id: str, from_port: str, to_node_id: str, to_port: str = "input"):
        """
        Link an output port to an input port

        Args:
            from_node_id: producer node id
            from_port: producer output port
            to_node_id: consumer node id
            to_port: consumer input port

        Raises:
            ValueError: unknown node or port, or the input port is already linked
        """
        if from_node_id not in self.nodes or to_node_id not in self.nodes:
            raise ValueError(f"Node not found: {from_node_id} -> {to_node_id}")

        from_node = self.nodes[from_node_id]
        to_node = self.nodes[to_node_id]

        if not from_node.has_output_port(from_port):
            raise ValueError(f"Node {from_node_id} has no output port {from_port}")

        if not to_node.has_input_port(to_port):
            raise ValueError(f"Node {to_node_id} has no input port {to_port}")

        source_key = f"{from_node_id}:{from_port}"
        target_key = f"{to_node_id}:{to_port}"
        if target_key in self.reverse_connections:
            raise ValueError(
                f"Input port {target_key} is already linked from {self.reverse_connections[target_key]}"
            )

        self.connections[source_key].append(target_key)
        self.reverse_connections[target_key] = source_key
        from_node.mark_linked()
        to_node.mark_linked()

        self._is_validated = False

        self.logger.debug(f"Linked: {source_key} -> {target_key}")

    def validate(self) -> bool:
        """
        Check the pipeline is ready to hand off

        Returns:
            True if the graph is acyclic, every input port is linked and
            every stream name is unique
        """
        if not self.nodes:
            self.logger.error("Pipeline has no nodes")
            return False

        for node_id, node in self.nodes.items():
            for port in node.get_input_ports():
                if f"{node_id}:{port}" not in self.reverse_connections:
                    self.logger.error(f"Input port {node_id}:{port} is not linked")
                    return False

        names = [node.config["stream_name"] for node in self.get_nodes_by_type(NodeType.SINK)]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            self.logger.error(f"Duplicate stream names: {duplicates}")
            return False

        try:
            self._topological_sort()
        except ValueError as e:
            self.logger.error(str(e))
            return False

        self._is_validated = True
        return True

    @property
    def is_validated(self) -> bool:
        return self._is_validated

    def _topological_sort(self):
        """Kahn's algorithm over node ids"""
        in_degree = defaultdict(int)

        for target_key in self.reverse_connections:
            in_degree[target_key.split(":")[0]] += 1

        queue = deque([node_id for node_id in self.nodes if in_degree[node_id] == 0])
        sorted_nodes = []

        while queue:
            node_id = queue.popleft()
            sorted_nodes.append(node_id)

            for port in self.nodes[node_id].get_output_ports():
                for target in self.connections.get(f"{node_id}:{port}", []):
                    target_node_id = target.split(":")[0]
                    in_degree[target_node_id] -= 1
                    if in_degree[target_node_id] == 0:
                        queue.append(target_node_id)

        if len(sorted_nodes) != len(self.nodes):
            raise ValueError("Pipeline contains a cycle")

        self.node_order = sorted_nodes

    def get_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def get_nodes_by_type(self, node_type: NodeType) -> List[Node]:
        return [node for node in self.nodes.values() if node.node_type == node_type]

    def get_nodes_by_class(self, node_cls: Type[Node]) -> List[Node]:
        return [node for node in self.nodes.values() if isinstance(node, node_cls)]

    def get_connections(self) -> List[Tuple[str, str]]:
        """All links as ("node:port", "node:port") pairs"""
        connections = []
        for source, targets in self.connections.items():
            for target in targets:
                connections.append((source, target))
        return connections

    def get_consumers(self, node_id: str, port: str) -> List[str]:
        """Input ports fed by an output port"""
        return list(self.connections.get(f"{node_id}:{port}", []))

    def get_source(self, node_id: str, port: str = "input") -> Optional[str]:
        """Output port feeding an input port"""
        return self.reverse_connections.get(f"{node_id}:{port}")

    def stream_names(self) -> List[str]:
        """External stream names, in sink creation order"""
        return [node.config["stream_name"] for node in self.get_nodes_by_type(NodeType.SINK)]

    def get_sink(self, stream_name: str) -> Optional[Node]:
        for node in self.get_nodes_by_type(NodeType.SINK):
            if node.config["stream_name"] == stream_name:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Graph description handed to the device runtime"""
        return {
            "pipeline_id": self.pipeline_id,
            "nodes": {node_id: node.to_dict() for node_id, node in self.nodes.items()},
            "connections": {k: list(v) for k, v in self.connections.items() if v},
            "node_order": list(self.node_order)
        }

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        return (f"Pipeline(id={self.pipeline_id}, nodes={len(self.nodes)}, "
                f"validated={self._is_validated})")
