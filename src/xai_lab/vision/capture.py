"""
Image sources and the acquire-classify-display loop.

Sources:
- FileSource: an image on disk
- ScreenSource: a screenshot (PIL.ImageGrab)
- CameraSource: a single camera frame (OpenCV)
- BytesSource: an encoded still image, e.g. a browser camera snapshot

The polling loop checks a ``threading.Event`` between iterations so a
caller (another thread, a UI callback) can stop it cleanly.
"""

import argparse
import io
import logging
import threading
from pathlib import Path
from typing import Callable, Protocol

import cv2
import keras
from PIL import Image, ImageGrab

from ..config import get_settings
from .classifier import ImageClassifier, Prediction, format_predictions

logger = logging.getLogger(__name__)


class ImageSource(Protocol):
    """Anything that can produce an RGB image on demand."""

    def capture(self) -> Image.Image: ...


class FileSource:
    """Image loaded from a file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def capture(self) -> Image.Image:
        return keras.utils.load_img(self.path)


class ScreenSource:
    """Screenshot of the full screen or a bounding box."""

    def __init__(self, bbox: tuple[int, int, int, int] | None = None):
        self.bbox = bbox

    def capture(self) -> Image.Image:
        return ImageGrab.grab(bbox=self.bbox).convert("RGB")


class CameraSource:
    """Single frame from a local camera; the device is released after each read."""

    def __init__(self, device: int | None = None):
        self.device = get_settings().camera_device if device is None else device

    def capture(self) -> Image.Image:
        camera = cv2.VideoCapture(self.device)
        try:
            ok, frame = camera.read()
        finally:
            camera.release()

        if not ok or frame is None:
            raise RuntimeError(f"Could not read a frame from camera {self.device}")

        # OpenCV delivers BGR
        return Image.fromarray(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))


class BytesSource:
    """An encoded still image (JPEG/PNG bytes)."""

    def __init__(self, data: bytes):
        self.data = data

    def capture(self) -> Image.Image:
        return Image.open(io.BytesIO(self.data)).convert("RGB")


def print_result(image: Image.Image, predictions: list[Prediction]) -> None:
    """Default display callback: print the ranked classes."""
    print(format_predictions(predictions))
    print()


def run_capture_loop(
    source: ImageSource,
    classifier: ImageClassifier,
    stop_event: threading.Event | None = None,
    interval: float | None = None,
    on_result: Callable[[Image.Image, list[Prediction]], None] | None = None,
    max_iterations: int | None = None,
) -> int:
    """
    Repeatedly acquire, classify and display images.

    The stop event is checked before every iteration and while waiting
    between iterations; an iteration already running completes first.

    Args:
        source: Where images come from
        classifier: Loaded ImageClassifier
        stop_event: Set it to end the loop (a fresh event if None)
        interval: Seconds between iterations (default from settings)
        on_result: Called with each image and its predictions
        max_iterations: Optional upper bound on iterations

    Returns:
        Number of completed iterations
    """
    stop_event = stop_event or threading.Event()
    interval = get_settings().capture_interval_seconds if interval is None else interval
    on_result = on_result or print_result

    iterations = 0
    try:
        while not stop_event.is_set():
            image = source.capture()
            predictions = classifier.classify(image)
            on_result(image, predictions)
            iterations += 1

            if max_iterations is not None and iterations >= max_iterations:
                break
            if stop_event.wait(interval):
                break
    except KeyboardInterrupt:
        logger.info("Capture loop interrupted", extra={"action": "capture_interrupted"})

    logger.info(
        f"Capture loop stopped after {iterations} iterations",
        extra={"action": "capture_stopped", "data": {"iterations": iterations}},
    )
    return iterations


def classify_file(path: Path | str, classifier: ImageClassifier | None = None) -> list[Prediction]:
    """Classify a single image file."""
    classifier = (classifier or ImageClassifier()).load()
    return classifier.classify(FileSource(path).capture())


def main():
    """Classify an image file, a camera frame, or poll the screen."""
    from ..main import setup_json_logging

    setup_json_logging()
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="xai-lab-classify",
        description="Top-k ImageNet classification of a file, camera frame or the screen",
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("path", nargs="?", type=Path, help="Image file to classify")
    group.add_argument("--screen", action="store_true", help="Poll screenshots until Ctrl-C")
    group.add_argument("--camera", action="store_true", help="Classify one camera frame")
    parser.add_argument("--model", default=settings.image_model, help="Pre-trained network")
    parser.add_argument("--top", type=int, default=settings.top_k, help="Number of classes")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.capture_interval_seconds,
        help="Seconds between screenshots",
    )
    parser.add_argument("--iterations", type=int, default=None, help="Stop after N screenshots")
    args = parser.parse_args()

    classifier = ImageClassifier(args.model, args.top).load()

    if args.screen:
        run_capture_loop(
            ScreenSource(),
            classifier,
            interval=args.interval,
            max_iterations=args.iterations,
        )
    elif args.camera:
        print_result(None, classifier.classify(CameraSource().capture()))
    else:
        print_result(None, classify_file(args.path, classifier))


if __name__ == "__main__":
    main()
