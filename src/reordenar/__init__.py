"""Reorder and prune Spotify playlists locally, then sync the result back."""

__version__ = "0.1.0"
