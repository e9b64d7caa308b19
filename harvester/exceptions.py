"""
Harvester exceptions.
"""


class HarvesterError(Exception):
    """Base class for harvester errors."""


class ConfigError(HarvesterError):
    """Configuration is missing or invalid; fatal at startup."""


class UpstreamError(HarvesterError):
    """Upstream API answered with an unusable body."""
