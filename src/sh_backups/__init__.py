"""sh-backups: ship dated backup archives to cloud storage."""

__version__ = "0.1.0"
