"""
Order SMS Notifier
==================

Texts customers as their Shopify order moves through fulfillment
(Confirmed → Packed → Shipped → Delivered) and serves a small tracking page
per order. Messages go out through Twilio.

Modules under this package:
- app.py       → HTTP routing + API Gateway Lambda entry point
- server.py    → Flask development server (PORT, default 3000)
- webhooks.py  → /webhook/order-* handlers
- tracking.py  → /track/<id> HTML page
- store.py     → order store (memory, JSON file, DynamoDB)
- notifier.py  → SMS templates, direct or SQS-queued delivery
- worker.py    → SQS-triggered sender for queued notifications
- health.py    → GET / liveness text
- utils/       → logging, secrets, Twilio client

Environment variables expected:
  • TWILIO_SID / TWILIO_AUTH_TOKEN / TWILIO_PHONE - Twilio credentials and sender
  • TWILIO_SECRET_NAME         - Secrets Manager secret to fill missing credentials (optional)
  • PUBLIC_BASE_URL            - Base URL used in tracking links
  • PORT                       - Dev server port (default: 3000)
  • ORDER_STORE                - memory | file | dynamodb (default: file)
  • ORDER_STORE_PATH           - JSON file for the file store (default: orders.json)
  • ORDERS_TABLE               - DynamoDB table for the dynamodb store
  • NOTIFY_QUEUE_URL           - SQS queue for deferred sends (optional)
  • LOG_LEVEL                  - Log verbosity (default: INFO)
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
