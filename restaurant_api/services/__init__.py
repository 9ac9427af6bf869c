"""
                        Services Module

Business logic on top of the store:
    - store: persistence gateway over the five record types
    - pricing: order pricing flow
"""

from restaurant_api.services.store import StoreGateway, CustomerOrderCount
from restaurant_api.services.pricing import OrderLine, PricedOrder, place_order, price_order_lines

__all__ = [
    "StoreGateway",
    "CustomerOrderCount",
    "OrderLine",
    "PricedOrder",
    "place_order",
    "price_order_lines",
]
