"""Vision module - pre-trained image classification and image capture."""

from .capture import (
    BytesSource,
    CameraSource,
    FileSource,
    ScreenSource,
    classify_file,
    run_capture_loop,
)
from .classifier import ImageClassifier, Prediction, format_predictions

__all__ = [
    "BytesSource",
    "CameraSource",
    "FileSource",
    "ImageClassifier",
    "Prediction",
    "ScreenSource",
    "classify_file",
    "format_predictions",
    "run_capture_loop",
]
