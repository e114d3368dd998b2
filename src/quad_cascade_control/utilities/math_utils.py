import math

import torch


def quaternion_to_matrix(quats: torch.Tensor) -> torch.Tensor:
    """
    Convert a batch of quaternions to rotation matrices.

    The resulting matrices rotate vectors from the body frame into the world
    frame when the quaternions describe the body attitude.

    Args:
        quats (torch.Tensor): Batch of quaternions of shape (..., 4) with
            quaternions in a (w, x, y, z) format.

    Returns:
        torch.Tensor: Rotation matrices of shape (..., 3, 3).
    """
    w, x, y, z = quats.unbind(-1)

    xx = x * x
    yy = y * y
    zz = z * z
    ww = w * w

    xy = x * y
    xz = x * z
    yz = y * z
    wx = w * x
    wy = w * y
    wz = w * z

    rot = torch.stack(
        [
            ww + xx - yy - zz,
            2 * (xy - wz),
            2 * (xz + wy),
            2 * (xy + wz),
            ww - xx + yy - zz,
            2 * (yz - wx),
            2 * (xz - wy),
            2 * (yz + wx),
            ww - xx - yy + zz,
        ],
        dim=-1,
    )

    return rot.reshape(quats.shape[:-1] + (3, 3))


def yaw_from_quaternion(quats: torch.Tensor) -> torch.Tensor:
    """
    Calculate yaw angles from a batch of quaternions.

    Note:
        This function assumes Tait-Bryan angles, applied in ZYX order.

    Args:
        quats (torch.Tensor): Batch of quaternions of shape (..., 4) with
            quaternions in a (w, x, y, z) format.

    Returns:
        torch.Tensor: Yaw angles in radians in the [-pi, pi] range, shape
            (...,).
    """
    w, x, y, z = quats.unbind(-1)

    yaw = torch.atan2(2 * (w * z + x * y), 1 - 2 * (y**2 + z**2))

    return yaw


def yaw_to_quaternion(yaw: torch.Tensor) -> torch.Tensor:
    """
    Convert yaw angles to quaternions in a (w, x, y, z) format assuming zero
    roll and pitch values.

    Note:
        This function assumes Tait-Bryan angles, applied in ZYX order.

    Args:
        yaw (torch.Tensor): Tensor of shape (N,) containing yaw angles in
            radians.

    Returns:
        torch.Tensor: Tensor of shape (N, 4) containing quaternions in a
            (w, x, y, z) format.
    """
    quat = torch.zeros((yaw.shape[0], 4), device=yaw.device, dtype=yaw.dtype)
    quat[:, 0] = torch.cos(yaw / 2)  # w
    quat[:, 3] = torch.sin(yaw / 2)  # z

    return quat


def euler_to_quaternion(
    roll: torch.Tensor, pitch: torch.Tensor, yaw: torch.Tensor
) -> torch.Tensor:
    """
    Convert roll, pitch and yaw angles to quaternions in a (w, x, y, z)
    format.

    Note:
        This function assumes Tait-Bryan angles, applied in ZYX order.

    Args:
        roll (torch.Tensor): Roll angles in radians, shape (N,).
        pitch (torch.Tensor): Pitch angles in radians, shape (N,).
        yaw (torch.Tensor): Yaw angles in radians, shape (N,).

    Returns:
        torch.Tensor: Tensor of shape (N, 4) containing quaternions in a
            (w, x, y, z) format.
    """
    cr = torch.cos(roll / 2)
    sr = torch.sin(roll / 2)
    cp = torch.cos(pitch / 2)
    sp = torch.sin(pitch / 2)
    cy = torch.cos(yaw / 2)
    sy = torch.sin(yaw / 2)

    quat = torch.stack(
        [
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        ],
        dim=-1,
    )

    return quat


def quaternion_multiply(q1: torch.Tensor, q2: torch.Tensor) -> torch.Tensor:
    """
    Compute the Hamilton product `q1 * q2` of two batches of quaternions in a
    (w, x, y, z) format.
    """
    w1, x1, y1, z1 = q1.unbind(-1)
    w2, x2, y2, z2 = q2.unbind(-1)

    return torch.stack(
        [
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        ],
        dim=-1,
    )


def wrap_yaw_error(yaw_cmd: torch.Tensor, yaw: torch.Tensor) -> torch.Tensor:
    """
    Calculate the shortest-path yaw error between a commanded and a current
    yaw angle.

    The commanded yaw is first normalized into the [0, 2 pi) range. The
    resulting error is then shifted once by 2 pi when it falls outside the
    [-pi, pi] range.

    Args:
        yaw_cmd (torch.Tensor): The commanded yaw angles in radians.
        yaw (torch.Tensor): The current yaw angles in radians, expected in
            the [-pi, pi] range.

    Returns:
        torch.Tensor: The wrapped yaw error in radians.
    """
    yaw_cmd = torch.remainder(yaw_cmd, 2 * math.pi)

    yaw_error = yaw_cmd - yaw
    yaw_error = torch.where(
        yaw_error > math.pi, yaw_error - 2 * math.pi, yaw_error
    )
    yaw_error = torch.where(
        yaw_error < -math.pi, yaw_error + 2 * math.pi, yaw_error
    )

    return yaw_error
