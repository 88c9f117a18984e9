"""
Command-line entry point (`ssdface` console script, or `python main.py`).

    ssdface --source 0                                   # camera 0
    ssdface --source shots/ --output-mode save_json,log
    ssdface --source door.mp4 --config site.yaml --output-mode save_screenshot

Exit status is 0 on success and 1 when configuration, model loading or
decoding fails.
"""

import argparse
import dataclasses
import logging
import time
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from ssdface.config import AppConfig, load_config, validate
from ssdface.detector import FaceDetector
from ssdface.errors import FaceDetectionError, LoadError
from ssdface.frame_source import FrameSource
from ssdface.output_handler import OutputHandler

logger = logging.getLogger("ssdface.cli")

# argparse dest -> (config section, field)
_OVERRIDES = {
    "source": ("input", "source"),
    "confidence": ("detection", "confidence_threshold"),
    "backend": ("model", "backend"),
    "output_mode": ("output", "mode"),
    "output_path": ("output", "save_path"),
}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ssdface",
        description="Detect faces per frame and rank them largest first.",
    )
    parser.add_argument("--source", help="Camera index, image, video, or image directory.")
    parser.add_argument("--config", help="YAML configuration file.")
    parser.add_argument("--confidence", type=float, help="Confidence threshold in [0, 1].")
    parser.add_argument("--backend", choices=["cpu", "cuda"], help="DNN compute backend.")
    parser.add_argument(
        "--output-mode",
        type=str.lower,
        help="Comma-separated: log, save_json, save_csv, save_screenshot.",
    )
    parser.add_argument("--output-path", help="Directory for written artifacts.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    return parser.parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return config with every CLI flag that was given applied, then re-validate."""
    for dest, (section, key) in _OVERRIDES.items():
        value = getattr(args, dest)
        if value is None:
            continue
        updated = dataclasses.replace(getattr(config, section), **{key: value})
        config = dataclasses.replace(config, **{section: updated})
    validate(config)
    return config


def run(
    detector: FaceDetector,
    source: Iterable[Tuple[int, np.ndarray]],
    sink: OutputHandler,
) -> int:
    """Detect on every frame of source, feeding results to sink. Returns frames processed."""
    frames = faces = 0
    started = time.perf_counter()
    try:
        for frame_id, frame in source:
            boxes = detector.detect(frame)
            sink.process_frame(frame_id, frame, boxes)
            frames += 1
            faces += len(boxes)
            if frames % 30 == 0:
                logger.info("Processed %d frames...", frames)
    finally:
        sink.finalize()
        elapsed = time.perf_counter() - started
        logger.info(
            "Finished: %d frames, %d faces, %.2f fps.",
            frames, faces, frames / elapsed if elapsed > 0 else 0.0,
        )
    return frames


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = apply_overrides(load_config(args.config), args)
        detector = FaceDetector(config)
        source = FrameSource(config.input.source, config.input.resize_width)
    except LoadError as e:
        logger.error("Model load failed: %s", e)
        return 1
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Startup failed: %s", e)
        return 1

    with source:
        try:
            run(detector, source, OutputHandler(config))
        except KeyboardInterrupt:
            logger.info("Interrupted by user.")
        except FaceDetectionError as e:
            logger.error("Detection failed: %s", e)
            return 1
    return 0
