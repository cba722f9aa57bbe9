from __future__ import annotations

import numpy as np


def sigmoid(values):
    """
    Logit -> probability, e^v / (1 + e^v).

    Only e^-|v| is ever evaluated, so large logits of either sign do not
    overflow. Accepts scalars or arrays; a scalar in gives a float out.
    """

    v = np.asarray(values, dtype=np.float64)
    e = np.exp(-np.abs(v))
    out = np.where(v >= 0, 1.0 / (1.0 + e), e / (1.0 + e))
    if out.ndim == 0:
        return float(out)
    return out


def softmax(logits, axis: int = -1) -> np.ndarray:
    """
    Numerically stable softmax along `axis` (max logit subtracted first).
    """

    x = np.asarray(logits, dtype=np.float64)
    shifted = x - np.max(x, axis=axis, keepdims=True)
    e = np.exp(shifted)
    return e / np.sum(e, axis=axis, keepdims=True)
