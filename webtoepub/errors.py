class WebToEpubError(Exception):
    """Base class for errors that abort a conversion run."""


class NetworkError(WebToEpubError):
    """Transport failure or non-2xx HTTP status."""


class BlockedError(WebToEpubError):
    """The fetched page is an anti-bot challenge instead of the story."""


class ContentNotFound(WebToEpubError):
    """No known story-body container on the page."""


class NoChaptersFound(WebToEpubError):
    """A series page listed zero chapters."""
