import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

WS_PATH = os.getenv("WS_PATH", "/ws")

# Outbound messages buffered per connection before further sends are dropped
OUTBOX_SIZE = int(os.getenv("OUTBOX_SIZE", 64))

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

WILDCARD = "any"
