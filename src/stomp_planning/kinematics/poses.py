"""Define classes to represent Cartesian positions, orientations, and poses."""

from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Iterator

DEFAULT_FRAME = "base_link"


@dataclass(frozen=True)
class Point3D:
    """An (x,y,z) position in 3D space."""

    x: float
    y: float
    z: float

    def __iter__(self) -> Iterator[float]:
        """Provide an iterator over the point's (x,y,z) coordinates."""
        yield from astuple(self)


@dataclass(frozen=True)
class Quaternion:
    """A unit quaternion representing a 3D orientation."""

    x: float
    y: float
    z: float
    w: float

    def __post_init__(self) -> None:
        """Normalize the quaternion after it is initialized."""
        norm = float(np.linalg.norm([self.x, self.y, self.z, self.w]))
        if norm == 0:
            raise ValueError(f"Cannot normalize a zero-valued quaternion: {self}")

        object.__setattr__(self, "x", self.x / norm)
        object.__setattr__(self, "y", self.y / norm)
        object.__setattr__(self, "z", self.z / norm)
        object.__setattr__(self, "w", self.w / norm)

    @classmethod
    def identity(cls) -> Quaternion:
        """Construct a Quaternion corresponding to the identity rotation."""
        return Quaternion(0, 0, 0, 1)

    @classmethod
    def from_yaw(cls, yaw_rad: float) -> Quaternion:
        """Construct a quaternion rotating about the z-axis by the given angle (radians)."""
        return Quaternion(0.0, 0.0, float(np.sin(yaw_rad / 2)), float(np.cos(yaw_rad / 2)))


@dataclass(frozen=True)
class Pose3D:
    """A position and orientation in 3D space."""

    position: Point3D
    orientation: Quaternion
    ref_frame: str = DEFAULT_FRAME

    def __str__(self) -> str:
        """Return a readable string summarizing the pose."""
        p = self.position
        q = self.orientation
        return (
            f"Pose3D(xyz=({p.x:.3f}, {p.y:.3f}, {p.z:.3f}), "
            f"xyzw=({q.x:.3f}, {q.y:.3f}, {q.z:.3f}, {q.w:.3f}), frame='{self.ref_frame}')"
        )

    @classmethod
    def from_xyz_yaw(cls, x: float, y: float, z: float, yaw_rad: float = 0.0) -> Pose3D:
        """Construct a pose from a position and a rotation about the z-axis."""
        return Pose3D(Point3D(x, y, z), Quaternion.from_yaw(yaw_rad))
