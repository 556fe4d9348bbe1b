"""
Device node kinds
"""

from .camera import ColorCameraNode, MonoCameraNode, BoardSocket, ColorResolution, MonoResolution, ColorOrder
from .stereo_depth import StereoDepthNode
from .neural_network import NeuralNetworkNode
from .xlink_out import XLinkOutNode

__all__ = [
    'ColorCameraNode', 'MonoCameraNode',
    'BoardSocket', 'ColorResolution', 'MonoResolution', 'ColorOrder',
    'StereoDepthNode',
    'NeuralNetworkNode',
    'XLinkOutNode'
]
