"""
Local collaborators.

Used when no third-party calendar/mail provider is configured:
- calendar.py: in-memory calendar that serves scheduled meetings back as events
- mailer.py: mailer that logs messages and keeps an outbox
"""
