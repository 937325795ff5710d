from typing import Union

import numpy as np


ArrayLike = Union[float, np.ndarray]


def sigmoid(x: ArrayLike) -> ArrayLike:
    """
    Logistic function evaluated in float64. Accepts scalars or arrays.
    """

    # exp(-x) overflows to inf for very negative x, which still yields 0.
    with np.errstate(over="ignore"):
        out = 1.0 / (1.0 + np.exp(-np.asarray(x, dtype=np.float64)))
    if np.ndim(out) == 0:
        return float(out)
    return out


def softmax(values: np.ndarray, axis: int = -1) -> np.ndarray:
    """
    Numerically stable softmax: the max along `axis` is subtracted before exp.
    """

    v = np.asarray(values, dtype=np.float64)
    if v.size == 0 or v.shape[axis] == 0:
        raise ValueError("softmax needs at least one value (label list must be non-empty).")
    e = np.exp(v - np.max(v, axis=axis, keepdims=True))
    return e / np.sum(e, axis=axis, keepdims=True)
