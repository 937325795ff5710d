from typing import Tuple

import numpy as np


def letterbox(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (416, 416),
    color: Tuple[int, int, int] = (0, 0, 0),
    scale_fill: bool = False,
    scaleup: bool = True,
):
    """
    Resize and pad an image to exactly `new_shape` (width, height).

    The grid geometry is fixed, so the output always matches the model input
    size; only the aspect-preserving resize and the padding vary.

    Returns:
        padded: resized + padded image
        ratio: (w_ratio, h_ratio)
        pad: (dw, dh) left/top padding
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    h, w = image.shape[:2]
    new_w, new_h = new_shape

    if scale_fill:
        resized_w, resized_h = new_w, new_h
        ratio = (new_w / w, new_h / h)
    else:
        r = min(new_w / w, new_h / h)
        if not scaleup:
            r = min(r, 1.0)
        ratio = (r, r)
        resized_w, resized_h = int(round(w * r)), int(round(h * r))

    if (w, h) != (resized_w, resized_h):
        image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    dw = (new_w - resized_w) / 2
    dh = (new_h - resized_h) / 2
    top, left = int(np.floor(dh)), int(np.floor(dw))
    bottom, right = new_h - resized_h - top, new_w - resized_w - left
    padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)

    return padded, ratio, (float(left), float(top))
