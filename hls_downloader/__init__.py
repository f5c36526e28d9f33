"""Decode, encode, and download HTTP Live Streaming playlists."""

__version__ = "0.1.0"
