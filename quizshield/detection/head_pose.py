import math
from typing import Mapping, Tuple

from ..config.settings import YAW_THRESHOLD, PITCH_THRESHOLD

"""
Cheap head-pose heuristic over six facial landmarks.

Runs every sampling tick, so there is no solvePnP / camera model here:
    yaw   -> horizontal nose offset from the eye midpoint,
             normalised by half the eye-to-eye distance
    pitch -> vertical nose offset below the eye line,
             normalised by the eye-to-mouth distance and recentred
"""

LANDMARK_NAMES = (
    "nose_tip",
    "chin",
    "left_eye_outer",
    "right_eye_outer",
    "mouth_left",
    "mouth_right",
)

YAW_SCALE = 45.0
PITCH_SCALE = 80.0
PITCH_BASELINE = 0.55

Point = Tuple[float, float]


def estimate_head_pose(landmarks: Mapping[str, Point]) -> Tuple[float, float]:
    """Return approximate (yaw, pitch) in degrees."""
    nose = landmarks["nose_tip"]
    chin = landmarks["chin"]
    left_eye = landmarks["left_eye_outer"]
    right_eye = landmarks["right_eye_outer"]
    left_mouth = landmarks["mouth_left"]
    right_mouth = landmarks["mouth_right"]

    face_width = math.hypot(right_eye[0] - left_eye[0], right_eye[1] - left_eye[1])
    face_height = math.hypot(chin[0] - nose[0], chin[1] - nose[1])
    if face_width == 0 or face_height == 0:
        return 0.0, 0.0

    eye_center_x = (left_eye[0] + right_eye[0]) / 2
    yaw = ((nose[0] - eye_center_x) / (face_width / 2)) * YAW_SCALE

    eye_center_y = (left_eye[1] + right_eye[1]) / 2
    mouth_center_y = (left_mouth[1] + right_mouth[1]) / 2
    vert_ref = mouth_center_y - eye_center_y
    if vert_ref == 0:
        pitch = 0.0
    else:
        pitch = ((nose[1] - eye_center_y) / vert_ref - PITCH_BASELINE) * PITCH_SCALE

    return float(yaw), float(pitch)


def is_looking(yaw: float, pitch: float,
               yaw_threshold: float = YAW_THRESHOLD,
               pitch_threshold: float = PITCH_THRESHOLD) -> bool:
    return abs(yaw) <= yaw_threshold and abs(pitch) <= pitch_threshold
