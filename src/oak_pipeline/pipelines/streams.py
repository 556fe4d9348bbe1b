"""
Stream names published by the pipelines; downstream publishers subscribe by these names
"""

PREVIEW = "preview"
LEFT = "left"
RIGHT = "right"
DISPARITY = "disparity"
DEPTH = "depth"
RECTIFIED_LEFT = "rectified_left"
RECTIFIED_RIGHT = "rectified_right"
DETECTIONS = "detections"
