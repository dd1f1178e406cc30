# Copyright 2025 Foliosearch Contributors.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.

"""Vector math helpers shared by the semantic matchers and suggestions.

All functions are fail-soft: degenerate input (missing vectors, length
mismatch, zero magnitude) yields a similarity of 0.0 instead of an error.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def _as_vector(vector: ArrayLike | None) -> NDArray[np.float64] | None:
    if vector is None:
        return None
    try:
        array = np.asarray(vector, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if array.ndim != 1 or array.size == 0:
        return None
    return array


def cosine_similarity(a: ArrayLike | None, b: ArrayLike | None) -> float:
    """Cosine similarity between two vectors.

    Returns 0.0 if either vector is missing, the lengths differ, or either
    vector has zero magnitude. Otherwise the result is in [-1, 1].

    Example:
        >>> cosine_similarity([1, 0], [1, 0])
        1.0
        >>> cosine_similarity([1, 2], [1, 2, 3])
        0.0
    """
    vec_a = _as_vector(a)
    vec_b = _as_vector(b)
    if vec_a is None or vec_b is None or vec_a.shape != vec_b.shape:
        return 0.0

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    # Clamp floating error so that cos(a, a) never exceeds 1
    return max(-1.0, min(1.0, similarity))

