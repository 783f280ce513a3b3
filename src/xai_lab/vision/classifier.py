"""
Image classification with a pre-trained ImageNet CNN (Keras applications).

One forward pass per image, no test-time augmentation, so the same image
always yields the same ranked predictions.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

import keras
import numpy as np
from PIL import Image

from ..config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """One predicted class."""

    class_id: str
    label: str
    score: float

    def __str__(self) -> str:
        return f"{self.label}: {self.score:.4f}"


@dataclass(frozen=True)
class Architecture:
    """A Keras application with its matching preprocessing and decoding."""

    builder: Callable[..., keras.Model]
    preprocess: Callable[[np.ndarray], np.ndarray]
    decode: Callable[..., list]
    input_size: tuple[int, int] = (224, 224)


ARCHITECTURES: dict[str, Architecture] = {
    "resnet50": Architecture(
        builder=keras.applications.ResNet50,
        preprocess=keras.applications.resnet50.preprocess_input,
        decode=keras.applications.resnet50.decode_predictions,
    ),
    "mobilenet_v2": Architecture(
        builder=keras.applications.MobileNetV2,
        preprocess=keras.applications.mobilenet_v2.preprocess_input,
        decode=keras.applications.mobilenet_v2.decode_predictions,
    ),
    "efficientnet_b0": Architecture(
        builder=keras.applications.EfficientNetB0,
        preprocess=keras.applications.efficientnet.preprocess_input,
        decode=keras.applications.efficientnet.decode_predictions,
    ),
}


class ImageClassifier:
    """
    Top-k image classifier around a pre-trained network.

    Usage:
        classifier = ImageClassifier("resnet50")
        for pred in classifier.classify(image):
            print(pred)

    A custom ``model`` with ``preprocess`` and ``decode`` callables can be
    injected instead of a named architecture; ``decode`` must behave like
    ``keras.applications.*.decode_predictions``.
    """

    def __init__(
        self,
        model_name: str | None = None,
        top_k: int | None = None,
        model: keras.Model | None = None,
        preprocess: Callable[[np.ndarray], np.ndarray] | None = None,
        decode: Callable[..., list] | None = None,
        input_size: tuple[int, int] | None = None,
    ):
        settings = get_settings()
        self.model_name = model_name or settings.image_model
        self.top_k = top_k or settings.top_k

        if model is not None:
            if decode is None:
                raise ValueError("An injected model needs a decode function")
            self._preprocess = preprocess or (lambda x: x)
            self._decode = decode
            self.input_size = input_size or (224, 224)
        else:
            if self.model_name not in ARCHITECTURES:
                raise ValueError(
                    f"Unknown model: {self.model_name}. Choose from {list(ARCHITECTURES)}"
                )
            arch = ARCHITECTURES[self.model_name]
            self._preprocess = preprocess or arch.preprocess
            self._decode = decode or arch.decode
            self.input_size = input_size or arch.input_size

        self.model = model

    @property
    def is_loaded(self) -> bool:
        return self.model is not None

    def load(self) -> "ImageClassifier":
        """Load the pre-trained weights (downloaded on first use)."""
        if self.model is None:
            logger.info(f"Loading {self.model_name} ImageNet weights", extra={"model": self.model_name})
            self.model = ARCHITECTURES[self.model_name].builder(weights="imagenet")
        return self

    def prepare(self, image: Image.Image | np.ndarray) -> np.ndarray:
        """
        Turn an image into a preprocessed batch of one.

        Args:
            image: PIL image or an (H, W, 3) RGB array

        Returns:
            Array of shape (1, height, width, 3)
        """
        if isinstance(image, np.ndarray):
            if image.ndim != 3 or image.shape[-1] != 3:
                raise ValueError(f"Expected an (H, W, 3) RGB array, got shape {image.shape}")
            image = Image.fromarray(image.astype("uint8"))

        image = image.convert("RGB").resize(self.input_size, Image.Resampling.BILINEAR)
        array = keras.utils.img_to_array(image)
        return self._preprocess(np.expand_dims(array, axis=0))

    def classify(self, image: Image.Image | np.ndarray) -> list[Prediction]:
        """
        Classify one image.

        Args:
            image: PIL image or RGB array

        Returns:
            Top-k predictions, highest score first
        """
        if self.model is None:
            raise RuntimeError("Model not loaded. Call load() first.")

        batch = self.prepare(image)
        scores = np.asarray(self.model.predict_on_batch(batch))
        decoded = self._decode(scores, top=self.top_k)[0]

        return [
            Prediction(class_id=str(class_id), label=str(label), score=float(score))
            for class_id, label, score in decoded
        ]


def format_predictions(predictions: list[Prediction]) -> str:
    """Console text of a prediction list, one class per line."""
    return "\n".join(
        f"{rank}. {pred}" for rank, pred in enumerate(predictions, 1)
    )
