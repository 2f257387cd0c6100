"""
EZTV API constants.

Limits and defaults imposed by the upstream API and used by the client
and the streaming engine.
"""

from datetime import timedelta

# =============================================================================
# API
# =============================================================================

EZTV_BASE_URL = "https://eztv.re/api"
GET_TORRENTS_PATH = "/get-torrents"

# Hard per-request cap enforced by the API; larger limits fall back to the default.
MAX_EZTV_API_LIMIT = 100
DEFAULT_EZTV_API_LIMIT = 30

# The API only recognizes the numeric part of an IMDb id ("tt0944947" -> "0944947").
IMDB_ID_PREFIX = "tt"

# =============================================================================
# Streaming
# =============================================================================

STREAM_RECHECK_INTERVAL = timedelta(minutes=5)
