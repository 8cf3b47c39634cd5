class LoadError(Exception):
    """Knowledge base source is unreadable or structurally invalid."""


class ConfigError(Exception):
    """Required startup configuration is missing or malformed."""
