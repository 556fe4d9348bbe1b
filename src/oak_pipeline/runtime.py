"""
Device runtime interface and an in-process loopback implementation

The runtime receives a finished pipeline and streams frames out of its named
sinks. ``LoopbackRuntime`` does no capture: it validates the pipeline,
resolves the shape and dtype each stream would carry and serves zero frames
of that layout, which is enough to exercise host-side consumers.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Tuple

import numpy as np

from .core.node import NodeType
from .core.pipeline import Pipeline

logger = logging.getLogger(__name__)

FrameSpec = Tuple[tuple, str]


class DeviceRuntime(ABC):
    """Consumer of assembled pipelines"""

    @abstractmethod
    def start(self, pipeline: Pipeline):
        """Take ownership of the pipeline and start streaming"""
        pass

    @abstractmethod
    def stop(self):
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        pass


class LoopbackQueue:
    """Output queue of one stream"""

    def __init__(self, name: str, spec: FrameSpec):
        self.name = name
        self.shape, self.dtype = spec
        self.sequence_num = 0

    def get(self) -> np.ndarray:
        """Next frame of the stream"""
        self.sequence_num += 1
        return np.zeros(self.shape, dtype=self.dtype)

    def __repr__(self) -> str:
        return f"LoopbackQueue(name={self.name}, shape={self.shape}, dtype={self.dtype})"


class LoopbackRuntime(DeviceRuntime):
    """Runtime that serves placeholder frames for every stream of a pipeline"""

    def __init__(self):
        self.pipeline = None
        self.queues: Dict[str, LoopbackQueue] = {}
        self._running = False

    def start(self, pipeline: Pipeline):
        if self._running:
            raise RuntimeError("Runtime is already running a pipeline")

        if not pipeline.validate():
            raise RuntimeError(f"Refusing invalid pipeline {pipeline.pipeline_id}")

        specs = self.resolve_stream_specs(pipeline)
        self.pipeline = pipeline
        self.queues = {name: LoopbackQueue(name, spec) for name, spec in specs.items()}
        self._running = True

        logger.info(f"Started pipeline {pipeline.pipeline_id} with streams: {list(self.queues)}")

    def stop(self):
        self.pipeline = None
        self.queues.clear()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def get_output_queue(self, name: str) -> LoopbackQueue:
        if not self._running:
            raise RuntimeError("Runtime is not running")
        if name not in self.queues:
            raise KeyError(f"Unknown stream: {name} (available: {sorted(self.queues)})")
        return self.queues[name]

    @staticmethod
    def resolve_stream_specs(pipeline: Pipeline) -> Dict[str, FrameSpec]:
        """
        Frame layout of every stream

        Args:
            pipeline: validated pipeline

        Returns:
            stream name -> (shape, dtype name)
        """
        cache: Dict[str, FrameSpec] = {}

        def resolve(source_key: str) -> FrameSpec:
            if source_key not in cache:
                node_id, port = source_key.split(":")
                node = pipeline.nodes[node_id]
                upstream = {
                    in_port: resolve(pipeline.get_source(node_id, in_port))
                    for in_port in node.get_input_ports()
                }
                cache[source_key] = node.output_spec(port, upstream)
            return cache[source_key]

        specs = {}
        for sink in pipeline.get_nodes_by_type(NodeType.SINK):
            specs[sink.config["stream_name"]] = resolve(pipeline.get_source(sink.node_id))
        return specs
