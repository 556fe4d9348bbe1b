"""
Configuration interpreter

Turns the parsed configuration tree into typed build settings and the
feature flags that decide the shape of each pipeline.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Iterable, Sequence, Union

import yaml

logger = logging.getLogger(__name__)

# Base disparity search range of the stereo engine, in pixels
BASE_MAX_DISPARITY = 96

DEPTH_STREAMS = ("disparity", "depth", "disparity_color")
RECTIFIED_STREAMS = ("rectified_left", "rectified_right")


class ConfigError(Exception):
    """Configuration tree cannot be interpreted"""


class MissingSection(ConfigError):
    """A required top-level section is absent"""

    def __init__(self, section: str, pipeline: str = ""):
        self.section = section
        self.pipeline = pipeline
        prefix = f"{pipeline} pipeline" if pipeline else "pipeline"
        super().__init__(f'{prefix} needs "{section}" section in its configuration')


class MissingField(ConfigError):
    """A required field is absent or has the wrong type"""

    def __init__(self, section: str, field: str, detail: str):
        self.section = section
        self.field = field
        self.detail = detail
        location = f"{section}.{field}" if field else section
        super().__init__(f"{location}: {detail}")


def parse_config(text: str) -> Dict[str, Any]:
    """
    Parse configuration text, JSON or YAML

    Args:
        text: configuration payload

    Returns:
        configuration tree, ``{}`` for an empty payload
    """
    # JSON first: it allows tab indentation, which YAML rejects
    try:
        tree = json.loads(text)
    except json.JSONDecodeError:
        try:
            tree = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse configuration: {e}") from e

    if tree is None:
        return {}
    if not isinstance(tree, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(tree).__name__}")
    return tree


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load a configuration file"""
    with open(config_path, 'r', encoding='utf-8') as f:
        tree = parse_config(f.read())
    logger.info(f"Loaded configuration: {config_path}")
    return tree


def require_section(tree: Any, key: str, pipeline: str = "") -> Any:
    """
    Return a required top-level section

    Raises:
        MissingSection: the key is absent (or the tree is not a mapping)
    """
    if not isinstance(tree, dict) or key not in tree:
        raise MissingSection(key, pipeline)
    return tree[key]


def require_field(section: Any, section_name: str, key: str, expected_type: type) -> Any:
    """
    Return a required field of a section

    Raises:
        MissingField: the field is absent or not of ``expected_type``
    """
    try:
        value = section[key]
    except (KeyError, TypeError, IndexError) as e:
        raise MissingField(section_name, key, f"key not found: {e}") from e

    # bool is an int subclass; ints must not pass as bools and vice versa
    if expected_type is bool:
        valid = isinstance(value, bool)
    else:
        valid = isinstance(value, expected_type) and not isinstance(value, bool)
    if not valid:
        raise MissingField(
            section_name, key,
            f"type must be {expected_type.__name__}, but is {type(value).__name__}"
        )
    return value


def has_any(candidates: Iterable[Any], wanted: Sequence[Any]) -> bool:
    """
    True if ``candidates`` contains at least one item of ``wanted``

    Plain nested scan, O(len(wanted) * len(candidates)). Both lists are short
    and hand written; matching is exact equality (case-sensitive).
    """
    candidates = list(candidates)
    for item in wanted:
        for candidate in candidates:
            if candidate == item:
                return True
    return False


def max_disparity(extended: bool, subpixel: bool) -> int:
    """Disparity search range for the given stereo modes"""
    value = BASE_MAX_DISPARITY
    if extended:
        value *= 2
    if subpixel:
        value *= 32  # 5 bits fractional disparity
    return value


@dataclass(frozen=True)
class FeatureFlags:
    """Booleans that select which nodes and links a stereo build creates"""
    with_depth: bool = False
    output_rectified: bool = False
    output_depth: bool = False

    @classmethod
    def from_streams(cls, streams: Iterable[str]) -> "FeatureFlags":
        streams = list(streams)
        return cls(
            with_depth=has_any(streams, DEPTH_STREAMS),
            output_rectified=has_any(streams, RECTIFIED_STREAMS),
            # TODO: read from the "depth" section once the depth stream output is exposed
            output_depth=False,
        )


@dataclass(frozen=True)
class StereoConfig:
    """Settings of the stereo pipeline"""
    calibration_file: str
    extended: bool
    subpixel: bool
    lrcheck: bool
    streams: tuple
    flags: FeatureFlags
    max_disparity: int

    @classmethod
    def from_tree(cls, tree: Dict[str, Any]) -> "StereoConfig":
        depth = require_section(tree, "depth", "stereo")
        calibration_file = require_field(depth, "depth", "calibration_file", str)
        extended = require_field(depth, "depth", "extended", bool)
        subpixel = require_field(depth, "depth", "subpixel", bool)

        streams = require_section(tree, "streams", "stereo")
        if not isinstance(streams, list):
            raise MissingField("streams", "", f"type must be list, but is {type(streams).__name__}")

        return cls(
            calibration_file=calibration_file,
            extended=extended,
            subpixel=subpixel,
            # left-right check is not configurable yet
            lrcheck=False,
            streams=tuple(streams),
            flags=FeatureFlags.from_streams(streams),
            max_disparity=max_disparity(extended, subpixel),
        )


@dataclass(frozen=True)
class DetectionConfig:
    """Settings of the detection pipeline"""
    blob_file: str

    @classmethod
    def from_tree(cls, tree: Dict[str, Any]) -> "DetectionConfig":
        ai = require_section(tree, "ai", "mobilenet_ssd")
        return cls(blob_file=require_field(ai, "ai", "blob_file", str))
