"""
oak_pipeline: configuration-driven device pipelines for stereo + neural network cameras
"""

from .core import Pipeline, BuildResult, ErrorKind, ConfigError, MissingSection, MissingField
from .pipelines import configure_pipeline, build_preview, build_stereo, build_detection
from .runtime import DeviceRuntime, LoopbackRuntime

__version__ = "0.1.0"

__all__ = [
    'Pipeline', 'BuildResult', 'ErrorKind', 'ConfigError', 'MissingSection', 'MissingField',
    'configure_pipeline', 'build_preview', 'build_stereo', 'build_detection',
    'DeviceRuntime', 'LoopbackRuntime'
]
