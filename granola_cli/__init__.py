"""
granola_cli package

Command-line access to Granola meeting notes: the desktop app's local
cache for meetings, people and folders, and the Granola API for
transcripts. Use `granola` (or `python -m granola_cli`) as the CLI
entrypoint, or import the cache and attendees modules directly.
"""

__all__ = ["cli", "cache", "attendees", "api_client"]
__version__ = "0.1.0"
