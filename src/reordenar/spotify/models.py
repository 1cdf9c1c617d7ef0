"""Pydantic models for Spotify Web API responses and credentials.

These are pure data models matching Spotify's JSON structure. Track-level
objects are frozen: they are taken verbatim from the API and never edited
locally.
"""

from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, Field

PLAYLIST_URI_PREFIX = "spotify:playlist:"

# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


class SpotifyImage(BaseModel):
    """Image object returned by Spotify (album art, playlist covers, avatars)."""

    url: str
    height: int | None = None
    width: int | None = None

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class SpotifyUser(BaseModel):
    """User profile from /me, also embedded as playlist owner / added_by."""

    id: str | None = None
    display_name: str | None = None
    email: str | None = None
    uri: str | None = None
    images: list[SpotifyImage] = Field(default_factory=list)
    external_urls: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Tracks
# ---------------------------------------------------------------------------


class SpotifyArtistSimplified(BaseModel):
    """Simplified artist object (embedded in tracks, albums)."""

    id: str | None = None
    name: str
    uri: str | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}


class SpotifyAlbumSimplified(BaseModel):
    """Simplified album object (embedded in tracks)."""

    id: str | None = None
    name: str
    release_date: str | None = None
    images: list[SpotifyImage] = Field(default_factory=list)
    external_urls: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}


class SpotifyTrack(BaseModel):
    """Full track object from Spotify."""

    id: str | None = None
    name: str
    uri: str | None = None
    duration_ms: int | None = None
    explicit: bool | None = None
    is_local: bool = False
    preview_url: str | None = None
    artists: list[SpotifyArtistSimplified] = Field(default_factory=list)
    album: SpotifyAlbumSimplified | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def primary_artist(self) -> str | None:
        """Name of the first listed artist, if any."""
        return self.artists[0].name if self.artists else None

    @property
    def artist_names(self) -> str:
        return ", ".join(artist.name for artist in self.artists)

    @property
    def duration_formatted(self) -> str:
        """Duration as ``m:ss``."""
        seconds = (self.duration_ms or 0) // 1000
        return f"{seconds // 60}:{seconds % 60:02d}"


# ---------------------------------------------------------------------------
# Play History
# ---------------------------------------------------------------------------


class SpotifyContext(BaseModel):
    """Playback context (playlist, album, artist, etc.)."""

    type: str | None = None
    uri: str | None = None
    href: str | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)

    @property
    def playlist_id(self) -> str | None:
        """Extract the playlist ID from a playlist context URI.

        'spotify:playlist:ABC123' -> 'ABC123'; any other context -> None.
        """
        if self.uri and self.uri.startswith(PLAYLIST_URI_PREFIX):
            return self.uri.removeprefix(PLAYLIST_URI_PREFIX) or None
        return None


class SpotifyPlayHistoryItem(BaseModel):
    """Single item from /me/player/recently-played."""

    track: SpotifyTrack
    played_at: datetime
    context: SpotifyContext | None = None


class SpotifyCursors(BaseModel):
    """Cursors for cursor-based paging."""

    after: str | None = None
    before: str | None = None


class RecentlyPlayedResponse(BaseModel):
    """Response from GET /me/player/recently-played."""

    items: list[SpotifyPlayHistoryItem] = Field(default_factory=list)
    next: str | None = None
    cursors: SpotifyCursors | None = None
    limit: int | None = None
    href: str | None = None


# ---------------------------------------------------------------------------
# Playlists
# ---------------------------------------------------------------------------


class SpotifyPlaylistTrackItem(BaseModel):
    """Single item within a playlist's tracks array.

    ``track`` is null for tracks Spotify has since removed from its catalogue.
    """

    track: SpotifyTrack | None = None
    added_at: str | None = None
    added_by: SpotifyUser | None = None
    is_local: bool = False


class SpotifyPlaylistTracks(BaseModel):
    """Paging object for tracks within a playlist."""

    items: list[SpotifyPlaylistTrackItem] = Field(default_factory=list)
    total: int = 0
    limit: int | None = None
    offset: int | None = None
    next: str | None = None
    previous: str | None = None
    href: str | None = None


class SpotifyTracksInfo(BaseModel):
    """Track-count summary embedded in simplified playlists."""

    href: str | None = None
    total: int = 0


class SpotifyPlaylist(BaseModel):
    """Simplified playlist from GET /me/playlists.

    Two playlists are equal when their IDs are equal, regardless of the
    snapshot of metadata they were fetched with.
    """

    id: str
    name: str
    description: str | None = None
    public: bool | None = None
    collaborative: bool | None = None
    owner: SpotifyUser | None = None
    images: list[SpotifyImage] = Field(default_factory=list)
    tracks: SpotifyTracksInfo | None = None
    snapshot_id: str | None = None
    uri: str | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SpotifyPlaylist):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def track_count(self) -> int:
        return self.tracks.total if self.tracks else 0


class UserPlaylistsResponse(BaseModel):
    """Response from GET /me/playlists."""

    items: list[SpotifyPlaylist] = Field(default_factory=list)
    total: int = 0
    limit: int | None = None
    offset: int | None = None
    next: str | None = None
    previous: str | None = None
    href: str | None = None


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class SpotifyTokenResponse(BaseModel):
    """Response from Spotify's /api/token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_token: str | None = None
    scope: str | None = None


class TokenBundle(BaseModel):
    """Access token, refresh token and expiry held for the signed-in user."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_token_response(
        cls,
        response: SpotifyTokenResponse,
        *,
        previous_refresh_token: str | None = None,
    ) -> "TokenBundle":
        """Build a bundle from a token response.

        Spotify may omit the refresh token on a refresh grant, in which case
        the previously held one stays valid and is carried over.
        """
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token or previous_refresh_token,
            expires_at=datetime.now(UTC) + timedelta(seconds=response.expires_in),
        )

    def is_expired(self, *, buffer_seconds: int = 0, now: datetime | None = None) -> bool:
        """True once ``now`` has passed the expiry (minus ``buffer_seconds``).

        A bundle without a known expiry is never considered expired locally;
        the server's 401 is the only signal in that case.
        """
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        return now > self.expires_at - timedelta(seconds=buffer_seconds)
