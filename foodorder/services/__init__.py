"""
                        Services Module

Business logic behind the routers. The payment gateway follows the hybrid
architecture pattern: a Mock (development) and a Real (production)
implementation behind one interface.

Services:
    - users: user profiles keyed by identity-provider subject
    - restaurants: owner restaurant management and public search
    - orders: checkout, payment webhook, order status
    - payment: Stripe Checkout and its mock
"""
