"""Tests for the gradient noise behind the debris wind."""
from __future__ import annotations

from cubeshatter.noise import noise3, noise_vector3


# //1.- Gradient noise vanishes on lattice points and stays bounded elsewhere.
def test_noise_is_zero_on_lattice_points():
    assert noise3(7, 1.0, 2.0, 3.0) == 0.0
    assert noise3(7, -4.0, 0.0, 5.0) == 0.0


def test_noise_is_deterministic_and_bounded():
    samples = [noise3(3, 0.37 * i, 0.11 * i, 0.53 * i) for i in range(1, 40)]
    assert samples == [noise3(3, 0.37 * i, 0.11 * i, 0.53 * i) for i in range(1, 40)]
    assert all(-1.5 <= value <= 1.5 for value in samples)
    assert any(value != 0.0 for value in samples)


def test_noise_vector_channels_are_decorrelated():
    x, y, z = noise_vector3(11, 0.3, 0.6, 0.9)
    assert len({x, y, z}) == 3
