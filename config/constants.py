"""Application-wide constants and configuration values.

This module centralizes all magic numbers and calibration constants so the
scoring thresholds live in one place. Every value can be overridden through
an environment variable of the same name.
"""
import os

# ============================================================================
# SERVER CONFIGURATION
# ============================================================================
DEFAULT_SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
# Cloud Run injects PORT env var; use it if available, otherwise default to 8000
SERVER_PORT = int(os.getenv("PORT", "8000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ============================================================================
# VISION ANALYSIS (face + arm tests)
# ============================================================================
ANALYSIS_WINDOW_SEC = float(os.getenv("ANALYSIS_WINDOW_SEC", "3.0"))
# Number of frames at which a window reaches full confidence
CALIBRATION_FRAME_COUNT = int(os.getenv("CALIBRATION_FRAME_COUNT", "10"))
NEUTRAL_SCORE = 0.5

# Joints below this confidence make a pose frame neutral
MIN_JOINT_CONFIDENCE = float(os.getenv("MIN_JOINT_CONFIDENCE", "0.3"))
MIN_EYE_REGION_POINTS = int(os.getenv("MIN_EYE_REGION_POINTS", "2"))
MIN_MOUTH_POINTS = int(os.getenv("MIN_MOUTH_POINTS", "4"))
# Scale applied to vertical offsets (mouth corners, wrists)
VERTICAL_OFFSET_GAIN = 2.0

# ============================================================================
# SPEECH RECOGNITION
# ============================================================================
RECORDING_TIMEOUT_SEC = float(os.getenv("RECORDING_TIMEOUT_SEC", "30.0"))
MAX_RECOGNITION_RETRIES = int(os.getenv("MAX_RECOGNITION_RETRIES", "2"))
RETRY_BACKOFF_SEC = float(os.getenv("RETRY_BACKOFF_SEC", "2.0"))
RECOGNITION_EVENT_QUEUE_SIZE = int(os.getenv("RECOGNITION_EVENT_QUEUE_SIZE", "64"))

# Speaking rate normalization (characters per second)
SPEAKING_RATE_FLOOR = 0.5
SPEAKING_RATE_SPAN = 1.5

STT_LANGUAGE = os.getenv("STT_LANGUAGE", "en-US")
STT_SAMPLE_RATE = int(os.getenv("STT_SAMPLE_RATE", "16000"))
STT_MODEL = os.getenv("STT_MODEL", "latest_short")
STT_ENABLE_PUNCTUATION = os.getenv("STT_ENABLE_PUNCTUATION", "false").lower() == "true"
# A session ends with the first final result (one test sentence)
STT_SINGLE_UTTERANCE = os.getenv("STT_SINGLE_UTTERANCE", "true").lower() == "true"

DEFAULT_TEST_SENTENCE = os.getenv(
    "DEFAULT_TEST_SENTENCE", "The quick brown fox jumps over the lazy dog"
)

# ============================================================================
# VERDICT THRESHOLDS
# ============================================================================
MIN_VERDICT_CONFIDENCE = float(os.getenv("MIN_VERDICT_CONFIDENCE", "0.3"))
FACE_ASYMMETRY_THRESHOLD = float(os.getenv("FACE_ASYMMETRY_THRESHOLD", "0.3"))
ARM_DRIFT_THRESHOLD = float(os.getenv("ARM_DRIFT_THRESHOLD", "0.4"))
ARM_STRENGTH_THRESHOLD = float(os.getenv("ARM_STRENGTH_THRESHOLD", "0.6"))
SPEECH_CLARITY_THRESHOLD = float(os.getenv("SPEECH_CLARITY_THRESHOLD", "0.6"))

# "inconclusive": low confidence -> Inconclusive; "strict": low confidence -> Abnormal
VERDICT_POLICY = os.getenv("VERDICT_POLICY", "inconclusive")
# "broad": any inconclusive -> Possible Stroke; "narrow": only abnormal counts
RISK_POLICY = os.getenv("RISK_POLICY", "broad")

# ============================================================================
# SESSION HISTORY
# ============================================================================
SESSION_STORE_PATH = os.getenv("SESSION_STORE_PATH", os.path.join("data", "stroke_sessions.json"))
MAX_STORED_SESSIONS = int(os.getenv("MAX_STORED_SESSIONS", "50"))
