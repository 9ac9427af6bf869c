"""
                Food Ordering API

REST API over customers, restaurants, menu items and orders,
built on FastAPI and async SQLAlchemy.
"""

__version__ = "1.0.0"
