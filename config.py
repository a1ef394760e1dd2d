import os

AI_API_URL = os.getenv("AI_API_URL")
AI_API_KEY = os.getenv("AI_API_KEY")
AI_MODEL = os.getenv("AI_MODEL", "google/gemini-3-flash-preview")
AI_REWRITE_MODEL = os.getenv("AI_REWRITE_MODEL", "google/gemini-2.5-flash")
AI_ASSIST_MODEL = os.getenv("AI_ASSIST_MODEL", AI_REWRITE_MODEL)
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", 30))

# Levels of nested batch_update actions a plan may carry
MAX_BATCH_DEPTH = int(os.getenv("MAX_BATCH_DEPTH", 3))
# Plans nested deeper than this are rejected outright instead of executed
MAX_PLAN_NESTING = int(os.getenv("MAX_PLAN_NESTING", 16))
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", 10))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))
