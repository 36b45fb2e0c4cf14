import cv2
import mediapipe as mp
import numpy as np
from .base_detector import BaseDetector

"""
    cv2 - OpenCV (colour conversion; camera frames arrive as BGR)
    mediapipe - Google's face mesh (468 landmarks)
    numpy - frames are numpy arrays
"""

mp_mesh = mp.solutions.face_mesh

# MediaPipe face-mesh indices for the six points the head-pose heuristic needs.
# Same points as 68-point indices 30, 8, 36, 45, 48, 54.
MESH_INDICES = {
    "nose_tip": 1,
    "chin": 152,
    "left_eye_outer": 33,
    "right_eye_outer": 263,
    "mouth_left": 61,
    "mouth_right": 291,
}


class MediapipeDetector(BaseDetector):
    """
    One instance per monitoring session; owns a streaming FaceMesh graph
    (static_image_mode=False so landmarks are tracked between ticks).
    """

    def __init__(self, min_detection_confidence=0.5, min_tracking_confidence=0.5):
        self.face_mesh = mp_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect_landmarks(self, frame: np.ndarray):
        # MediaPipe expects RGB, OpenCV gives BGR
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w = rgb.shape[:2]

        res = self.face_mesh.process(rgb)
        if not res.multi_face_landmarks:
            return None

        lm = res.multi_face_landmarks[0].landmark
        return {name: (lm[i].x * w, lm[i].y * h) for name, i in MESH_INDICES.items()}

    def close(self):
        self.face_mesh.close()
