"""Custom exception hierarchy for reelwall.

All exceptions that cross layer boundaries must inherit from
:class:`ReelwallError`.  Raw third-party exceptions (yt-dlp, httpx,
Playwright, subprocess failures) must NEVER propagate beyond the
infrastructure layer — they are caught there and re-raised as a typed
subclass defined here.

Hierarchy
---------
ReelwallError
├── InvalidURLError
├── InvalidRequestError
│   └── UploadTooLargeError
├── UnknownPlatformError
├── JobNotFoundError
├── MediaFileNotFoundError
├── UpstreamUnavailableError
├── DownloadFailedError
├── ProcessingError
├── EnvironmentError
│   └── EnvironmentCheckError
└── FfmpegNotFoundError
"""

from __future__ import annotations


class ReelwallError(Exception):
    """Base exception for all reelwall errors.

    Every user-visible error condition maps to a subclass of this
    exception so that the HTTP and CLI error boundaries can render a
    clean message without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Request validation ----------------------------------------------------

class InvalidURLError(ReelwallError):
    """Raised when a URL matches no platform or carries no video id."""


class InvalidRequestError(ReelwallError):
    """Raised when request parameters are rejected before any work starts."""


class UploadTooLargeError(InvalidRequestError):
    """Raised when an uploaded file exceeds the configured size limit."""


class UnknownPlatformError(ReelwallError):
    """Raised when a platform name is not one of the supported platforms."""


class JobNotFoundError(ReelwallError):
    """Raised when a download job id is not known to the registry."""


class MediaFileNotFoundError(ReelwallError):
    """Raised when a transform input path does not exist on disk."""


# --- Upstream services -----------------------------------------------------

class UpstreamUnavailableError(ReelwallError):
    """Raised by a metadata tier when its backing service fails.

    The metadata service recovers from this locally by moving on to the
    next tier; it is never surfaced to an HTTP caller.
    """


class DownloadFailedError(ReelwallError):
    """Raised when the extractor process terminates with an error."""


class ProcessingError(ReelwallError):
    """Raised when the media tool exits non-zero or cannot finish a job."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        diagnostics: str = "",
    ) -> None:
        super().__init__(message, hint=hint)
        self.diagnostics: str = diagnostics
        """Tail of the tool's stderr output."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(ReelwallError):
    """Raised when a required runtime dependency is not available."""


class EnvironmentCheckError(EnvironmentError):
    """Raised when a required environment precondition is not met."""


class FfmpegNotFoundError(ReelwallError):
    """Raised when ffmpeg or ffprobe cannot be located on the system PATH."""


def append_ytdlp_upgrade_suggestion(hint: str) -> str:
    """Append yt-dlp upgrade guidance to an existing hint text.

    The suggestion is appended only once and preserves the original
    hint content verbatim.
    """
    marker = "Also try updating yt-dlp:"
    if marker in hint:
        return hint
    return "\n".join(
        (
            hint,
            marker,
            "    pip install --upgrade yt-dlp",
        )
    )
