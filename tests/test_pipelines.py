#!/usr/bin/env python3
"""
Pipeline builder tests
Preview, stereo and detection topologies, the configuration entry point,
the loopback runtime and the command line
"""

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

import numpy as np

# allow running from a source checkout without installing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from oak_pipeline.core.config import ConfigError, MissingSection, MissingField
from oak_pipeline.core.pipeline import Pipeline
from oak_pipeline.core.result import ErrorKind
from oak_pipeline.main import main
from oak_pipeline.nodes import (
    ColorCameraNode, MonoCameraNode, StereoDepthNode, NeuralNetworkNode, XLinkOutNode,
    BoardSocket, ColorResolution, MonoResolution, ColorOrder
)
from oak_pipeline.pipelines import PIPELINE_BUILDERS, configure_pipeline, build_preview, build_stereo, build_detection
from oak_pipeline.runtime import LoopbackRuntime


def stereo_tree(streams, extended=False, subpixel=False):
    return {
        "depth": {"calibration_file": "depthai.calib", "extended": extended, "subpixel": subpixel},
        "streams": list(streams)
    }


ALL_STEREO_STREAMS = ["left", "right", "disparity", "depth", "rectified_left", "rectified_right"]


class TestPreviewPipeline(unittest.TestCase):

    def test_topology(self):
        pipeline = build_preview()
        self.assertEqual(len(pipeline), 2)
        self.assertEqual(pipeline.get_connections(), [("color_cam:preview", "xout_preview:input")])
        self.assertEqual(pipeline.stream_names(), ["preview"])
        self.assertTrue(pipeline.validate())

    def test_camera_settings(self):
        cam = build_preview().get_node("color_cam")
        self.assertIsInstance(cam, ColorCameraNode)
        self.assertEqual(cam.config["preview_size"], (300, 300))
        self.assertEqual(cam.config["resolution"], ColorResolution.THE_1080_P)
        self.assertTrue(cam.config["interleaved"])

    def test_ignores_config(self):
        for config in (None, {}, {"depth": {}}, "anything"):
            pipeline = build_preview(config)
            self.assertEqual(len(pipeline), 2)
            self.assertEqual(len(pipeline.get_connections()), 1)


class TestStereoPipeline(unittest.TestCase):

    def test_missing_depth_section_creates_nothing(self):
        pipeline = Pipeline("stereo")
        with self.assertRaises(MissingSection):
            build_stereo({"streams": ["depth"]}, pipeline)
        self.assertEqual(len(pipeline), 0)

    def test_missing_field_creates_nothing(self):
        pipeline = Pipeline("stereo")
        tree = stereo_tree(["depth"])
        del tree["depth"]["subpixel"]
        with self.assertRaises(MissingField) as ctx:
            build_stereo(tree, pipeline)
        self.assertEqual(ctx.exception.field, "subpixel")
        self.assertEqual(len(pipeline), 0)

    def test_without_depth(self):
        pipeline = build_stereo(stereo_tree(["left", "right"]))

        self.assertEqual(len(pipeline.get_nodes_by_class(MonoCameraNode)), 2)
        self.assertEqual(len(pipeline.get_nodes_by_class(StereoDepthNode)), 0)
        self.assertEqual(len(pipeline.get_nodes_by_class(XLinkOutNode)), 2)
        self.assertEqual(len(pipeline), 4)
        self.assertEqual(pipeline.stream_names(), ["left", "right"])

        self.assertEqual(pipeline.get_source("xout_left"), "mono_left:out")
        self.assertEqual(pipeline.get_source("xout_right"), "mono_right:out")
        self.assertTrue(pipeline.validate())

    def test_cameras(self):
        pipeline = build_stereo(stereo_tree(["left"]))
        left = pipeline.get_node("mono_left")
        right = pipeline.get_node("mono_right")
        self.assertEqual(left.config["board_socket"], BoardSocket.LEFT)
        self.assertEqual(right.config["board_socket"], BoardSocket.RIGHT)
        self.assertEqual(left.config["resolution"], MonoResolution.THE_720_P)
        self.assertEqual(right.config["resolution"], MonoResolution.THE_720_P)

    def test_with_depth_and_rectified(self):
        pipeline = build_stereo(stereo_tree(ALL_STEREO_STREAMS))

        self.assertEqual(len(pipeline.get_nodes_by_class(MonoCameraNode)), 2)
        self.assertEqual(len(pipeline.get_nodes_by_class(StereoDepthNode)), 1)
        self.assertEqual(len(pipeline.get_nodes_by_class(XLinkOutNode)), 6)
        self.assertEqual(
            sorted(pipeline.stream_names()),
            sorted(["left", "right", "disparity", "depth", "rectified_left", "rectified_right"])
        )

        # published left/right are the stereo node's synchronized copies
        self.assertEqual(pipeline.get_source("xout_left"), "stereo:synced_left")
        self.assertEqual(pipeline.get_source("xout_right"), "stereo:synced_right")
        self.assertEqual(pipeline.get_consumers("mono_left", "out"), ["stereo:left"])
        self.assertEqual(pipeline.get_consumers("mono_right", "out"), ["stereo:right"])

        self.assertEqual(pipeline.get_source("xout_rectified_left"), "stereo:rectified_left")
        self.assertEqual(pipeline.get_source("xout_rectified_right"), "stereo:rectified_right")
        self.assertEqual(pipeline.get_source("xout_disparity"), "stereo:disparity")
        self.assertEqual(pipeline.get_source("xout_depth"), "stereo:depth")
        self.assertTrue(pipeline.validate())

    def test_with_depth_only(self):
        pipeline = build_stereo(stereo_tree(["disparity_color"]))

        self.assertEqual(len(pipeline.get_nodes_by_class(StereoDepthNode)), 1)
        self.assertEqual(pipeline.stream_names(), ["left", "right", "disparity", "depth"])
        self.assertEqual(pipeline.get_consumers("stereo", "rectified_left"), [])
        self.assertFalse(pipeline.get_node("stereo").config["output_rectified"])
        self.assertTrue(pipeline.validate())

    def test_rectified_without_depth(self):
        pipeline = build_stereo(stereo_tree(["rectified_left"]))

        self.assertEqual(len(pipeline.get_nodes_by_class(StereoDepthNode)), 0)
        self.assertEqual(pipeline.stream_names(), ["left", "right"])
        self.assertTrue(pipeline.validate())

    def test_stereo_settings(self):
        pipeline = build_stereo(stereo_tree(["depth", "rectified_right"], extended=True, subpixel=True))
        config = pipeline.get_node("stereo").config

        self.assertFalse(config["output_depth"])
        self.assertTrue(config["output_rectified"])
        self.assertEqual(config["confidence_threshold"], 200)
        self.assertEqual(config["rectify_edge_fill_color"], 0)
        self.assertFalse(config["left_right_check"])
        self.assertTrue(config["extended_disparity"])
        self.assertTrue(config["subpixel"])

    def test_idempotent(self):
        tree = stereo_tree(ALL_STEREO_STREAMS)
        first = build_stereo(tree)
        second = build_stereo(tree)

        self.assertEqual(first.to_dict(), second.to_dict())
        for node_id, node in first.nodes.items():
            self.assertIsNot(node, second.nodes[node_id])


class TestDetectionPipeline(unittest.TestCase):

    def test_topology(self):
        pipeline = build_detection({"ai": {"blob_file": "model.blob"}})

        self.assertEqual(len(pipeline), 4)
        self.assertEqual(pipeline.stream_names(), ["preview", "detections"])
        self.assertEqual(
            sorted(pipeline.get_consumers("color_cam", "preview")),
            ["nn:input", "xout_preview:input"]
        )
        self.assertEqual(pipeline.get_source("xout_detections"), "nn:out")
        self.assertTrue(pipeline.validate())

    def test_settings(self):
        pipeline = build_detection({"ai": {"blob_file": "model.blob"}})
        cam = pipeline.get_node("color_cam")
        nn = pipeline.get_node("nn")

        self.assertIsInstance(nn, NeuralNetworkNode)
        self.assertEqual(nn.config["blob_path"], "model.blob")
        self.assertEqual(cam.config["preview_size"], (300, 300))
        self.assertEqual(cam.config["resolution"], ColorResolution.THE_1080_P)
        self.assertFalse(cam.config["interleaved"])
        self.assertEqual(cam.config["color_order"], ColorOrder.BGR)

    def test_missing_config(self):
        pipeline = Pipeline("mobilenet_ssd")
        with self.assertRaises(MissingSection):
            build_detection({}, pipeline)
        with self.assertRaises(MissingField):
            build_detection({"ai": {"blob": "model.blob"}}, pipeline)
        self.assertEqual(len(pipeline), 0)

    def test_empty_blob_path_propagates(self):
        with self.assertRaises(ValueError):
            build_detection({"ai": {"blob_file": ""}})


class TestConfigurePipeline(unittest.TestCase):
    """Configuration entry point"""

    def test_success(self):
        with self.assertLogs("oak_pipeline.pipelines", "INFO") as logs:
            result = configure_pipeline("stereo", stereo_tree(["depth"]))
        self.assertTrue(result.ok)
        self.assertTrue(result.pipeline.is_validated)
        self.assertIn("Initialized stereo pipeline.", "\n".join(logs.output))

    def test_missing_section(self):
        with self.assertLogs("oak_pipeline.pipelines", "ERROR"):
            result = configure_pipeline("stereo", {"streams": ["depth"]})
        self.assertFalse(result.ok)
        self.assertIsNone(result.pipeline)
        self.assertEqual(result.error_kind, ErrorKind.MISSING_SECTION)
        self.assertIn("depth", result.detail)

    def test_missing_field(self):
        with self.assertLogs("oak_pipeline.pipelines", "ERROR"):
            result = configure_pipeline("mobilenet_ssd", {"ai": {}})
        self.assertEqual(result.error_kind, ErrorKind.MISSING_FIELD)
        self.assertIn("blob_file", result.detail)

    def test_detection_alias(self):
        result = configure_pipeline("detection", {"ai": {"blob_file": "model.blob"}})
        self.assertEqual(result.pipeline.stream_names(), ["preview", "detections"])

    def test_unknown_pipeline(self):
        with self.assertRaises(KeyError):
            configure_pipeline("thermal", {})

    def test_other_config_errors_propagate(self):
        def build_broken(config):
            raise ConfigError("unreadable calibration")

        with patch.dict(PIPELINE_BUILDERS, {"broken": build_broken}):
            with self.assertRaises(ConfigError) as ctx:
                configure_pipeline("broken", {})
        self.assertEqual(str(ctx.exception), "unreadable calibration")

    def test_hands_off_to_runtime(self):
        runtime = LoopbackRuntime()
        result = configure_pipeline("preview", None, runtime=runtime)
        self.assertTrue(runtime.is_running)
        self.assertIs(runtime.pipeline, result.pipeline)

    def test_failed_build_never_reaches_runtime(self):
        runtime = LoopbackRuntime()
        with self.assertLogs("oak_pipeline.pipelines", "ERROR"):
            configure_pipeline("stereo", {}, runtime=runtime)
        self.assertFalse(runtime.is_running)


class TestLoopbackRuntime(unittest.TestCase):

    def setUp(self):
        self.runtime = LoopbackRuntime()

    def tearDown(self):
        self.runtime.stop()

    def test_preview_frames(self):
        self.runtime.start(build_preview())
        frame = self.runtime.get_output_queue("preview").get()
        self.assertEqual(frame.shape, (300, 300, 3))
        self.assertEqual(frame.dtype, np.uint8)

    def test_detection_frames(self):
        self.runtime.start(build_detection({"ai": {"blob_file": "model.blob"}}))
        self.assertEqual(self.runtime.get_output_queue("preview").get().shape, (3, 300, 300))
        detections = self.runtime.get_output_queue("detections").get()
        self.assertEqual(detections.shape, (700,))
        self.assertEqual(detections.dtype, np.float16)

    def test_stereo_frames(self):
        self.runtime.start(build_stereo(stereo_tree(ALL_STEREO_STREAMS, subpixel=True)))
        self.assertEqual(self.runtime.get_output_queue("left").get().shape, (720, 1280))
        self.assertEqual(self.runtime.get_output_queue("rectified_right").get().shape, (720, 1280))
        disparity = self.runtime.get_output_queue("disparity").get()
        self.assertEqual(disparity.dtype, np.uint16)
        self.assertEqual(self.runtime.get_output_queue("depth").get().dtype, np.uint16)

    def test_disparity_without_subpixel(self):
        self.runtime.start(build_stereo(stereo_tree(["disparity"])))
        self.assertEqual(self.runtime.get_output_queue("disparity").get().dtype, np.uint8)

    def test_sequence_numbers(self):
        self.runtime.start(build_preview())
        queue = self.runtime.get_output_queue("preview")
        queue.get()
        queue.get()
        self.assertEqual(queue.sequence_num, 2)

    def test_unknown_stream(self):
        self.runtime.start(build_preview())
        with self.assertRaises(KeyError):
            self.runtime.get_output_queue("depth")

    def test_not_running(self):
        with self.assertRaises(RuntimeError):
            self.runtime.get_output_queue("preview")

    def test_refuses_invalid_pipeline(self):
        pipeline = Pipeline("broken")
        pipeline.create(XLinkOutNode, "xout")
        with self.assertLogs("Pipeline_broken", "ERROR"):
            with self.assertRaises(RuntimeError):
                self.runtime.start(pipeline)
        self.assertFalse(self.runtime.is_running)

    def test_revalidates_after_reconfiguration(self):
        pipeline = configure_pipeline("stereo", stereo_tree(["depth"])).unwrap()
        pipeline.get_node("xout_depth").set_stream_name("left")
        with self.assertLogs(pipeline.logger.name, "ERROR"):
            with self.assertRaises(RuntimeError):
                self.runtime.start(pipeline)
        self.assertFalse(self.runtime.is_running)

    def test_single_pipeline(self):
        self.runtime.start(build_preview())
        with self.assertRaises(RuntimeError):
            self.runtime.start(build_preview())


class TestCommandLine(unittest.TestCase):

    def run_main(self, argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

    def write_config(self, tree):
        handle = tempfile.NamedTemporaryFile("w", suffix=".json", delete=False)
        with handle:
            json.dump(tree, handle)
        self.addCleanup(Path(handle.name).unlink)
        return handle.name

    def test_preview(self):
        code, output = self.run_main(["preview", "--log-level", "WARNING"])
        self.assertEqual(code, 0)
        self.assertIn("preview: shape=(300, 300, 3)", output)

    def test_stereo_dump(self):
        path = self.write_config(stereo_tree(["depth"]))
        code, output = self.run_main(["stereo", "--config", path, "--dump", "--log-level", "WARNING"])
        self.assertEqual(code, 0)
        self.assertIn("StereoDepthNode", output)
        self.assertIn("disparity: shape=(720, 1280)", output)

    def test_missing_section(self):
        path = self.write_config({"streams": ["depth"]})
        with self.assertLogs("oak_pipeline.pipelines", "ERROR"):
            code, output = self.run_main(["stereo", "--config", path])
        self.assertEqual(code, 1)
        self.assertIn("Failed to build stereo pipeline", output)

    def test_missing_file(self):
        with self.assertLogs(level="ERROR"):
            code, _ = self.run_main(["stereo", "--config", "/nonexistent/config.yaml"])
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
