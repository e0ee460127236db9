# vision/config.py
# ======= recognition client knobs (env overrides) =======
import os
from pathlib import Path

BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:5000")
HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "5"))

CAM_INDEX = int(os.getenv("CAM_INDEX", "0"))
CAP_WIDTH = 640
CAP_HEIGHT = 480

DISTANCE_THRESHOLD = float(os.getenv("DISTANCE_THRESHOLD", "0.6"))   # strict "<"
REQUIRED_RECOGNITIONS = int(os.getenv("REQUIRED_RECOGNITIONS", "3"))  # consecutive frames
RECOGNITION_INTERVAL_S = float(os.getenv("RECOGNITION_INTERVAL_S", "1.0"))
DEFAULT_STATUS = "present"

# Haar face boxes for the descriptor pipeline
MIN_FACE_PX = 70

VISION_DIR = Path(__file__).resolve().parent
MODELS_DIR = Path(os.getenv("MODELS_DIR", str(VISION_DIR / "models")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
