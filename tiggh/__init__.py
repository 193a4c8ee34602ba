"""tig-gh: a terminal dashboard for GitHub repositories."""

__version__ = "0.1.0"
