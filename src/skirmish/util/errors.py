"""Configuration exceptions.

These are raised while reading squad and board definitions only. The battle
controller never lets an exception cross its command surface; invalid
commands come back as failed ``CommandResult`` values instead.
"""


class ConfigError(Exception):
    """Raised when a configuration file is unreadable or structurally invalid."""


class UnitConfigError(ConfigError):
    """Raised when a single unit definition cannot be turned into a Unit."""
