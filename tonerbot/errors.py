"""Exception hierarchy for the bot's downstream failures."""


class TonerBotError(Exception):
    """Base class for all bot errors."""


class CatalogUnavailableError(TonerBotError):
    """Raised when the catalog backend cannot be reached or read."""


class RenderError(TonerBotError):
    """Raised when a quote document could not be produced."""


class TransportError(TonerBotError):
    """Raised inside a transport when the provider rejects a send."""
