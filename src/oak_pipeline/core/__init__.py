"""
Core module
Pipeline graph, node base classes, configuration interpretation and build results
"""

from .pipeline import Pipeline
from .node import Node, SourceNode, ProcessingNode, SinkNode, NodeType, NodeStatus
from .config import (
    ConfigError, MissingSection, MissingField,
    FeatureFlags, StereoConfig, DetectionConfig,
    parse_config, load_config, require_section, require_field, has_any, max_disparity
)
from .result import BuildResult, ErrorKind

__all__ = [
    'Pipeline',
    'Node', 'SourceNode', 'ProcessingNode', 'SinkNode', 'NodeType', 'NodeStatus',
    'ConfigError', 'MissingSection', 'MissingField',
    'FeatureFlags', 'StereoConfig', 'DetectionConfig',
    'parse_config', 'load_config', 'require_section', 'require_field', 'has_any', 'max_disparity',
    'BuildResult', 'ErrorKind'
]
