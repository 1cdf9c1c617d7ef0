"""Spotify API URLs and retry defaults."""

# Spotify Accounts
SPOTIFY_ACCOUNTS_BASE = "https://accounts.spotify.com"
SPOTIFY_AUTHORIZE_URL = f"{SPOTIFY_ACCOUNTS_BASE}/authorize"
SPOTIFY_TOKEN_URL = f"{SPOTIFY_ACCOUNTS_BASE}/api/token"

# Spotify Web API base
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

# Spotify Web API endpoints
ME_URL = f"{SPOTIFY_API_BASE}/me"
USER_PLAYLISTS_URL = f"{SPOTIFY_API_BASE}/me/playlists"
RECENTLY_PLAYED_URL = f"{SPOTIFY_API_BASE}/me/player/recently-played"
PLAYLIST_URL = f"{SPOTIFY_API_BASE}/playlists"

# Page sizes (Spotify maximums)
PLAYLISTS_PAGE_LIMIT = 50
TRACKS_PAGE_LIMIT = 100
RECENTLY_PLAYED_LIMIT = 50

# Retry defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
DEFAULT_CONCURRENCY_LIMIT = 5
DEFAULT_REQUEST_TIMEOUT = 30.0  # seconds
