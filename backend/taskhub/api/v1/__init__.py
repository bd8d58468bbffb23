"""Version 1 API handlers."""
