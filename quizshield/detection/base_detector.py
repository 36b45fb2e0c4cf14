from typing import Dict, Optional, Tuple

import numpy as np

Landmarks = Dict[str, Tuple[float, float]]


class BaseDetector:
    def detect_landmarks(self, frame: np.ndarray) -> Optional[Landmarks]:
        """Return named pixel landmarks of the primary face, or None if no face"""
        raise NotImplementedError

    def close(self):
        pass
