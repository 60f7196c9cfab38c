"""
Head Pose Attenuation Module

Blend-shape trackers degrade when the head is turned away from the camera.
Instead of dropping such frames (which would starve the temporal smoother),
every emotion score is discounted by a penalty fraction per extreme Euler angle.

Angles come from the ZYX (aerospace) quaternion decomposition and are named
for the face-tracking frame (X right, Y up, Z toward the camera):
- pitch: rotation about the X axis (nodding)
- yaw: rotation about the Y axis (turning), clamped to +/- pi/2 at the gimbal boundary
- roll: rotation about the Z axis (tilting)
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

import config
from utils.blend_shapes import HeadTransform


@dataclass(frozen=True)
class EulerAngles:
    """Head orientation in radians."""
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    def as_dict(self) -> dict:
        return {"roll": self.roll, "pitch": self.pitch, "yaw": self.yaw}


def rotation_to_quaternion(rotation: np.ndarray) -> Tuple[float, float, float, float]:
    """
    Convert a 3x3 rotation matrix to a unit quaternion (x, y, z, w).

    Uses the branch on the largest diagonal term so the square root argument
    stays well away from zero.
    """
    r = np.asarray(rotation, dtype=np.float64)
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        w = 0.25 * s
        x = (r[2, 1] - r[1, 2]) / s
        y = (r[0, 2] - r[2, 0]) / s
        z = (r[1, 0] - r[0, 1]) / s
    elif r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = math.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2]) * 2.0
        w = (r[2, 1] - r[1, 2]) / s
        x = 0.25 * s
        y = (r[0, 1] + r[1, 0]) / s
        z = (r[0, 2] + r[2, 0]) / s
    elif r[1, 1] > r[2, 2]:
        s = math.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2]) * 2.0
        w = (r[0, 2] - r[2, 0]) / s
        x = (r[0, 1] + r[1, 0]) / s
        y = 0.25 * s
        z = (r[1, 2] + r[2, 1]) / s
    else:
        s = math.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1]) * 2.0
        w = (r[1, 0] - r[0, 1]) / s
        x = (r[0, 2] + r[2, 0]) / s
        y = (r[1, 2] + r[2, 1]) / s
        z = 0.25 * s
    norm = math.sqrt(x * x + y * y + z * z + w * w)
    if norm < 1e-12:
        return 0.0, 0.0, 0.0, 1.0
    return x / norm, y / norm, z / norm, w / norm


def quaternion_to_euler(q: Tuple[float, float, float, float]) -> EulerAngles:
    """ZYX quaternion decomposition; X, Y, Z angles map to pitch, yaw, roll."""
    qx, qy, qz, qw = q

    sinr_cosp = 2.0 * (qw * qx + qy * qz)
    cosr_cosp = 1.0 - 2.0 * (qx * qx + qy * qy)
    x_angle = math.atan2(sinr_cosp, cosr_cosp)

    sinp = 2.0 * (qw * qy - qz * qx)
    if abs(sinp) >= 1.0:
        y_angle = math.copysign(math.pi / 2.0, sinp)
    else:
        y_angle = math.asin(sinp)

    siny_cosp = 2.0 * (qw * qz + qx * qy)
    cosy_cosp = 1.0 - 2.0 * (qy * qy + qz * qz)
    z_angle = math.atan2(siny_cosp, cosy_cosp)

    return EulerAngles(roll=z_angle, pitch=x_angle, yaw=y_angle)


def head_angles(transform: HeadTransform) -> EulerAngles:
    return quaternion_to_euler(rotation_to_quaternion(transform.rotation))


class HeadPoseAttenuator:
    """
    Discounts emotion scores when the head is turned away from the camera.

    Usage:
        attenuator = HeadPoseAttenuator()
        adjusted = attenuator.attenuate(0.8, frame.transform)
    """

    def __init__(
        self,
        threshold: Optional[float] = None,
        pitch_penalty: Optional[float] = None,
        yaw_penalty: Optional[float] = None,
        roll_penalty: Optional[float] = None,
    ):
        self.threshold = config.HEAD_POSE_ANGLE_THRESHOLD_RAD if threshold is None else threshold
        self.pitch_penalty = config.HEAD_POSE_PITCH_PENALTY if pitch_penalty is None else pitch_penalty
        self.yaw_penalty = config.HEAD_POSE_YAW_PENALTY if yaw_penalty is None else yaw_penalty
        self.roll_penalty = config.HEAD_POSE_ROLL_PENALTY if roll_penalty is None else roll_penalty

    def penalty(self, angles: EulerAngles) -> float:
        """Total penalty fraction for these angles, in [0, 1]."""
        total = 0.0
        if abs(angles.pitch) > self.threshold:
            total += self.pitch_penalty
        if abs(angles.yaw) > self.threshold:
            total += self.yaw_penalty
        if abs(angles.roll) > self.threshold:
            total += self.roll_penalty
        return max(0.0, min(1.0, total))

    def attenuate_with_angles(self, score: float, angles: EulerAngles) -> float:
        adjusted = score * (1.0 - self.penalty(angles))
        return max(0.0, min(1.0, adjusted))

    def attenuate(self, score: float, transform: HeadTransform) -> float:
        return self.attenuate_with_angles(score, head_angles(transform))
