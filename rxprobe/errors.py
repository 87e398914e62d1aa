class ConfigurationError(Exception):
    """Raised at construction time when the health surface is misconfigured."""
