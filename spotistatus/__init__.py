"""Share Spotify listening status with collaboration-platform users."""

__version__ = "0.1.0"
