#!/usr/bin/env python3
"""
oak-pipeline command line
Builds a preview, stereo or detection pipeline from a configuration file
and starts it on the loopback runtime
"""

import sys
import argparse
import logging
from typing import List, Optional

import yaml

from .core.config import ConfigError, load_config
from .pipelines import PIPELINE_BUILDERS, configure_pipeline
from .runtime import LoopbackRuntime


def setup_logging(level: str = "INFO"):
    """Configure logging"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point, returns the process exit code"""
    parser = argparse.ArgumentParser(description="Configuration-driven device pipelines")
    parser.add_argument(
        "mode",
        choices=sorted(PIPELINE_BUILDERS),
        help="pipeline to build"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="configuration file (YAML or JSON)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="log level"
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="print the assembled pipeline as YAML"
    )

    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        config = load_config(args.config) if args.config else {}
    except (OSError, ConfigError) as e:
        logging.error(f"Failed to load configuration: {e}")
        return 1

    runtime = LoopbackRuntime()
    result = configure_pipeline(args.mode, config, runtime=runtime)
    if not result.ok:
        print(f"Failed to build {args.mode} pipeline: {result.detail}")
        return 1

    for name, queue in runtime.queues.items():
        print(f"  {name}: shape={queue.shape}, dtype={queue.dtype}")

    if args.dump:
        print(yaml.safe_dump(result.pipeline.to_dict(), sort_keys=False))

    runtime.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
