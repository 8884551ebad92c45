"""
                Restaurant Order Tracker

Async backend that records what each table ordered and tracks how much
of every line-item has already been delivered from the kitchen.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
