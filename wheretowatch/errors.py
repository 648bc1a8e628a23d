"""
Errors that stop a run. Per-show lookup and label failures are logged and
never raised past the pipeline.
"""


class WhereToWatchError(Exception):
    """Base error for fatal conditions."""
    pass


class ConfigurationError(WhereToWatchError):
    """Missing or invalid settings."""
    pass


class LibraryError(WhereToWatchError):
    """The media server library could not be listed."""
    def __init__(self, library: str, message: str):
        self.library = library
        self.message = message
        super().__init__(f"Error fetching library '{library}': {message}")


class CatalogError(WhereToWatchError):
    """The streaming provider catalog could not be fetched."""
    def __init__(self, country: str, message: str):
        self.country = country
        self.message = message
        super().__init__(f"Error fetching providers for {country}: {message}")
