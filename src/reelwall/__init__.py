"""reelwall — social-video to live-wallpaper loop service.

Resolves YouTube, Facebook and Instagram links, fetches metadata and
media through yt-dlp, and re-encodes the result with ffmpeg for looping
wallpaper playback, all behind a small HTTP API.
"""

from reelwall.version import __version__

__all__: list[str] = ["__version__"]
