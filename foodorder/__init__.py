"""
                Food Ordering Backend

Restaurants publish menus, customers check out through a hosted payment
page, and payment confirmation arrives as a signed webhook.
Hybrid Mock/Real payment gateway selected by ENV_MODE.
"""

__version__ = "1.0.0"
