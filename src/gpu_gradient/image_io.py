"""Save and load packed RGBA8 images"""

import os

import numpy as np
from PIL import Image


def words_to_rgba(words: np.ndarray, width: int, height: int) -> np.ndarray:
    """View packed words as (height, width, 4) RGBA bytes.

    Words are a << 24 | b << 16 | g << 8 | r, so their little-endian bytes
    are r, g, b, a in that order.
    """
    if words.size < width * height:
        raise ValueError(
            f"Got {words.size} words, need {width * height} for {width} x {height}"
        )
    flat = np.ascontiguousarray(words.reshape(-1)[: width * height], dtype="<u4")
    return flat.view(np.uint8).reshape(height, width, 4)


def rgba_to_words(rgba: np.ndarray) -> np.ndarray:
    """Inverse of words_to_rgba; returns (height, width) uint32."""
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected (height, width, 4) array, got {rgba.shape}")
    height, width, _ = rgba.shape
    packed = np.ascontiguousarray(rgba, dtype=np.uint8).view("<u4")
    return packed.reshape(height, width).astype(np.uint32)


def image_save(path: str, words: np.ndarray, width: int, height: int) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    # (h, w, 4) uint8 is inferred as RGBA
    image = Image.fromarray(words_to_rgba(words, width, height))
    image.save(path)

    print(f"Saved {path}")


def image_load(path: str) -> np.ndarray:
    with Image.open(path) as image:
        rgba = np.asarray(image.convert("RGBA"))
    return rgba_to_words(rgba)
