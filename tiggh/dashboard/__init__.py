"""Textual dashboard for tig-gh."""
