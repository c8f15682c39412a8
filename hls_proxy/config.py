import os

# --- CONFIGURATION ---
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", 5000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Per-attempt upstream timeout, roughly one or two segment durations.
UPSTREAM_TIMEOUT = float(os.environ.get("HLS_PROXY_TIMEOUT", 20))
MAX_REDIRECTS = 5
CHUNK_SIZE = 65536

PROXY_ROUTES = frozenset({"/__proxy/hls", "/api/hls-proxy"})
MOUNT_PATH = "/api/hls-proxy"

USER_AGENT = os.environ.get(
    "HLS_PROXY_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
)
ACCEPT_LANGUAGE = "en-US,en;q=0.9"

REFERERS = tuple(
    ref.strip()
    for ref in os.environ.get("HLS_PROXY_REFERERS", "https://hianime.to/,https://megacloud.com/").split(",")
    if ref.strip()
)
