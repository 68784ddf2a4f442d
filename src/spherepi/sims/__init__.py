"""Samplers for :mod:`spherepi`."""

from __future__ import annotations

from .sphere import OCTANT_SCALE, UniformSource, estimate_sphere_volume

__all__ = [
    "estimate_sphere_volume",
    "UniformSource",
    "OCTANT_SCALE",
]
