"""Task agent: drives meeting/email task requests and sends scheduled reminders."""

__version__ = "0.1.0"
