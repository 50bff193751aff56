class ExporterError(Exception):
    """Base class for failures inside one scrape cycle."""


class TransportError(ExporterError):
    """The upstream node could not be reached (network, TLS, timeout, HTTP status)."""


class DecodeError(ExporterError):
    """An upstream payload was not the JSON shape we expect."""


class CorrelationPreconditionError(ExporterError):
    """A node identifier is too short to derive its short identifier."""
