import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./quizshield.db")

# Camera sampling / attention tracking
DETECTION_INTERVAL_MS = int(os.getenv("DETECTION_INTERVAL_MS", 500))
YAW_THRESHOLD = float(os.getenv("YAW_THRESHOLD", 30.0))
PITCH_THRESHOLD = float(os.getenv("PITCH_THRESHOLD", 25.0))
SMOOTHING_WINDOW = int(os.getenv("SMOOTHING_WINDOW", 5))
SMOOTHING_MAJORITY = int(os.getenv("SMOOTHING_MAJORITY", 3))
GRACE_PERIOD_MS = int(os.getenv("GRACE_PERIOD_MS", 2000))
AWAY_LIMIT_SEC = int(os.getenv("AWAY_LIMIT_SEC", 60))

CAMERA_INDEX = int(os.getenv("CAMERA_INDEX", 0))
FRAME_WIDTH = int(os.getenv("FRAME_WIDTH", 320))
FRAME_HEIGHT = int(os.getenv("FRAME_HEIGHT", 240))

# Ledger
AUTO_SUBMIT_VIOLATION_LIMIT = int(os.getenv("AUTO_SUBMIT_VIOLATION_LIMIT", 100))

# Reporting client
API_BASE_URL = os.getenv("API_BASE_URL", "http://127.0.0.1:8001")
REPORT_TIMEOUT_SECONDS = float(os.getenv("REPORT_TIMEOUT_SECONDS", 5))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
