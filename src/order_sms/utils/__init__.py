"""
Order SMS Utilities
===================

Shared helper modules for the order SMS notifier:

- logger.py          → structured JSON logging
- secrets.py         → AWS Secrets Manager lookup for Twilio credentials
- twilio_client.py   → authenticated Twilio client and SMS sender

Nothing in this package holds request state; everything here is safe to
share across threads and Lambda invocations.
"""

from .logger import get_logger, log

__all__ = [
    "get_logger",
    "log",
]
