"""NumPy-backed math utilities: Vec3, Quaternion, Mat4 operations.

Vectors are plain numpy arrays; quaternions are [x, y, z, w] arrays.
Matrices are 4x4 numpy arrays acting on column vectors.
"""

import numpy as np
from numpy.typing import NDArray

from limbik.constants import EPSILON

# Type aliases
Vec3 = NDArray[np.float64]
Mat4 = NDArray[np.float64]
Quat = NDArray[np.float64]  # [x, y, z, w]


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> Vec3:
    return np.array([x, y, z], dtype=np.float64)


def as_vec3(v) -> Vec3:
    """Coerce any 3-sequence to a float64 Vec3 (copying)."""
    return np.array(v, dtype=np.float64).reshape(3)


def mat4_identity() -> Mat4:
    return np.eye(4, dtype=np.float64)


def mat4_from_quaternion(q: Quat) -> Mat4:
    """Convert quaternion [x,y,z,w] to 4x4 rotation matrix."""
    x, y, z, w = q
    m = np.eye(4, dtype=np.float64)
    m[0, 0] = 1 - 2 * (y * y + z * z)
    m[0, 1] = 2 * (x * y - z * w)
    m[0, 2] = 2 * (x * z + y * w)
    m[1, 0] = 2 * (x * y + z * w)
    m[1, 1] = 1 - 2 * (x * x + z * z)
    m[1, 2] = 2 * (y * z - x * w)
    m[2, 0] = 2 * (x * z - y * w)
    m[2, 1] = 2 * (y * z + x * w)
    m[2, 2] = 1 - 2 * (x * x + y * y)
    return m


def mat4_compose(position: Vec3, quaternion: Quat, scale: Vec3) -> Mat4:
    """Compose TRS matrix from position, quaternion rotation, and scale."""
    m = mat4_from_quaternion(quaternion)
    m[:3, 0] *= scale[0]
    m[:3, 1] *= scale[1]
    m[:3, 2] *= scale[2]
    m[0, 3] = position[0]
    m[1, 3] = position[1]
    m[2, 3] = position[2]
    return m


def mat4_inverse(m: Mat4) -> Mat4:
    return np.linalg.inv(m)


# Quaternion operations

def quat_identity() -> Quat:
    return np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)


def quat_from_euler(x: float, y: float, z: float, order: str = "XYZ") -> Quat:
    """Create quaternion from Euler angles (radians)."""
    cx, sx = np.cos(x / 2), np.sin(x / 2)
    cy, sy = np.cos(y / 2), np.sin(y / 2)
    cz, sz = np.cos(z / 2), np.sin(z / 2)

    if order == "XYZ":
        return np.array([
            sx * cy * cz + cx * sy * sz,
            cx * sy * cz - sx * cy * sz,
            cx * cy * sz + sx * sy * cz,
            cx * cy * cz - sx * sy * sz,
        ], dtype=np.float64)
    elif order == "ZYX":
        return np.array([
            sx * cy * cz - cx * sy * sz,
            cx * sy * cz + sx * cy * sz,
            cx * cy * sz - sx * sy * cz,
            cx * cy * cz + sx * sy * sz,
        ], dtype=np.float64)
    else:
        raise ValueError(f"Unsupported Euler order: {order}")


def quat_from_axis_angle(axis: Vec3, angle: float) -> Quat:
    """Create quaternion from axis-angle."""
    half = angle / 2
    s = np.sin(half)
    a = normalize(axis)
    return np.array([a[0] * s, a[1] * s, a[2] * s, np.cos(half)], dtype=np.float64)


def quat_multiply(a: Quat, b: Quat) -> Quat:
    """Multiply two quaternions (a * b): rotate by b, then by a."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return np.array([
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    ], dtype=np.float64)


def quat_conjugate(q: Quat) -> Quat:
    return np.array([-q[0], -q[1], -q[2], q[3]], dtype=np.float64)


def quat_inverse(q: Quat) -> Quat:
    """Inverse of any non-zero quaternion (conjugate for unit quaternions)."""
    n2 = float(np.dot(q, q))
    if n2 < EPSILON:
        return quat_identity()
    return quat_conjugate(q) / n2


def quat_normalize(q: Quat) -> Quat:
    n = np.linalg.norm(q)
    if n < EPSILON:
        return quat_identity()
    return q / n


def quat_rotate_vec3(q: Quat, v: Vec3) -> Vec3:
    """Rotate a vector by a quaternion."""
    qv = q[:3]
    w = q[3]
    t = 2.0 * np.cross(qv, v)
    return v + w * t + np.cross(qv, t)


def quat_from_to(a: Vec3, b: Vec3) -> Quat:
    """Shortest-arc rotation that turns direction *a* onto direction *b*.

    Either vector may be unnormalized.  A zero vector yields identity;
    opposite vectors yield a half turn about an arbitrary perpendicular.
    """
    a_n = normalize(a)
    b_n = normalize(b)
    if not a_n.any() or not b_n.any():
        return quat_identity()

    d = float(np.dot(a_n, b_n))
    if d < -1.0 + 1e-9:
        axis = any_perpendicular(a_n)
        return np.array([axis[0], axis[1], axis[2], 0.0], dtype=np.float64)

    c = np.cross(a_n, b_n)
    return quat_normalize(np.array([c[0], c[1], c[2], 1.0 + d], dtype=np.float64))


def quat_angle(a: Quat, b: Quat) -> float:
    """Angle in radians between two orientations."""
    dot = abs(float(np.dot(quat_normalize(a), quat_normalize(b))))
    return 2.0 * float(np.arccos(min(1.0, dot)))


# Vector operations

def normalize(v: Vec3) -> Vec3:
    n = np.linalg.norm(v)
    if n < EPSILON:
        return np.zeros_like(v)
    return v / n


def distance(a: Vec3, b: Vec3) -> float:
    return float(np.linalg.norm(np.asarray(a) - np.asarray(b)))


def any_perpendicular(v: Vec3) -> Vec3:
    """Some unit vector orthogonal to *v*."""
    ref = vec3(1, 0, 0) if abs(v[0]) < 0.9 else vec3(0, 1, 0)
    return normalize(np.cross(v, ref))


def orthonormalize(axis: Vec3, v: Vec3) -> tuple[Vec3, Vec3]:
    """Normalize *axis* and make *v* a unit vector orthogonal to it.

    Gram-Schmidt step: the component of *v* along *axis* is removed.
    If nothing is left, an arbitrary perpendicular is returned instead.
    """
    axis_n = normalize(axis)
    perp = v - np.dot(v, axis_n) * axis_n
    v_n = normalize(perp)
    if not v_n.any():
        v_n = any_perpendicular(axis_n) if axis_n.any() else normalize(v)
    return axis_n, v_n


def deg_to_rad(degrees: float) -> float:
    return degrees * np.pi / 180.0


def transform_point(m: Mat4, p: Vec3) -> Vec3:
    """Transform a point by a 4x4 matrix."""
    v = np.array([p[0], p[1], p[2], 1.0], dtype=np.float64)
    r = m @ v
    return r[:3]
