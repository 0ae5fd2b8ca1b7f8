"""Save and restore named sets of Claude configuration files."""

__version__ = "0.3.0"
