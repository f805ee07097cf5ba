"""Notification package.

Queues secured documents for delivery by inserting ``toutgoingemails``
rows; the mail transport that sends them runs elsewhere.
"""
