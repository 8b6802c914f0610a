import os

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", 0))

USE_IN_MEMORY_BACKEND = os.getenv("USE_IN_MEMORY_BACKEND", "false").lower() in ("1", "true", "yes")

# Presence
STALE_AFTER_SECONDS = float(os.getenv("STALE_AFTER_SECONDS", 10))
SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", 15))

# Messages
BROADCAST_TARGET = os.getenv("BROADCAST_TARGET", "Todos")
JOIN_TEXT = "entra na sala..."
LEAVE_TEXT = "sai da sala..."
TIME_FORMAT = "%H:%M:%S"

CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)
