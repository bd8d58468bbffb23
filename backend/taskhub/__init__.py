"""TaskHub: departmental task and project collaboration service."""

__version__ = "0.1.0"
