""" Tests for vector helpers and quaternion rotations.
"""

import math

import numpy as np
import pytest

import ddgmesh.linalg as linalg

from ddgmesh.linalg import Quaternion


def rodrigues(x, a, phi):
    c, s = math.cos(phi), math.sin(phi)
    return x * c + a * a.dot(x) * (1.0 - c) + np.cross(a, x) * s


def test_angle_sign():
    x = np.array([1.0, 0.0, 0.0])
    y = np.array([0.0, 1.0, 0.0])
    z = np.array([0.0, 0.0, 1.0])

    assert linalg.angle(x, y) == pytest.approx(0.5 * math.pi)
    assert linalg.angle(x, y, z) == pytest.approx(0.5 * math.pi)
    assert linalg.angle(x, y, -z) == pytest.approx(-0.5 * math.pi)


def test_unit():
    u = np.array([3.0, 0.0, 4.0])
    v = linalg.unit(u)

    assert linalg.norm(v) == pytest.approx(1.0)
    assert u[0] == 3.0
    np.testing.assert_allclose(v, [0.6, 0.0, 0.8])


class TestQuaternion:

    def test_rotation_matches_rodrigues(self, rng):
        for _ in range(10):
            a = linalg.unit(rng.standard_normal(3))
            x = rng.standard_normal(3)
            phi = rng.uniform(-math.pi, math.pi)

            q = Quaternion.rotation(a, phi)

            np.testing.assert_allclose(q.rotate(x), rodrigues(x, a, phi),
                                       atol=1e-12)

    def test_rotation_is_unit(self):
        q = Quaternion.rotation(np.array([0.0, 0.0, 1.0]), 1.234)
        assert q.re ** 2 + q.im.dot(q.im) == pytest.approx(1.0)

    def test_quarter_turn(self):
        q = Quaternion.rotation(np.array([0.0, 0.0, 1.0]), 0.5 * math.pi)
        y = q.rotate([1.0, 0.0, 0.0])

        np.testing.assert_allclose(y, [0.0, 1.0, 0.0], atol=1e-12)

    def test_hamilton_product(self):
        i = Quaternion(0.0, [1.0, 0.0, 0.0])
        j = Quaternion(0.0, [0.0, 1.0, 0.0])

        k = i * j

        assert k.re == 0.0
        np.testing.assert_array_equal(k.im, [0.0, 0.0, 1.0])

        m = j * i
        np.testing.assert_array_equal(m.im, [0.0, 0.0, -1.0])

    def test_composition(self):
        a = np.array([0.0, 1.0, 0.0])
        p = Quaternion.rotation(a, 0.3)
        q = Quaternion.rotation(a, 0.4)

        x = np.array([1.0, 2.0, 3.0])

        np.testing.assert_allclose((p * q).rotate(x),
                                   Quaternion.rotation(a, 0.7).rotate(x))

    def test_conjugate_inverts(self):
        q = Quaternion.rotation(linalg.unit(np.ones(3)), 2.0)
        x = np.array([0.5, -1.0, 2.0])

        np.testing.assert_allclose(q.conj().rotate(q.rotate(x)), x)
