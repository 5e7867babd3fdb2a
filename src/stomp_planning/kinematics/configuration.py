"""Define type aliases and helpers to represent robot joint configurations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import ArrayLike

Configuration = Dict[str, float]
"""A map from joint names to positions (rad or m)."""

JointVector = NDArray[np.float64]
"""An ordered vector of joint positions, one per active DOF of a planning group."""


def as_joint_vector(values: ArrayLike) -> JointVector:
    """Copy the given values into a read-only 1D joint vector."""
    vector = np.array(values, dtype=np.float64).reshape(-1)
    vector.setflags(write=False)
    return vector


def l1_distance(a: ArrayLike, b: ArrayLike) -> float:
    """Compute the summed absolute difference between two joint vectors."""
    return float(np.abs(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)).sum())


def configuration_from_vector(vector: ArrayLike, joint_names: Sequence[str]) -> Configuration:
    """Map an ordered joint vector onto the given joint names."""
    values = np.asarray(vector, dtype=np.float64).reshape(-1)
    if len(values) != len(joint_names):
        raise ValueError(f"Expected {len(joint_names)} joint values, got {len(values)}")
    return {name: float(value) for name, value in zip(joint_names, values)}
