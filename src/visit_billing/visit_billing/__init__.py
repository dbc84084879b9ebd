"""Visit Billing package.

Multi-guest visit billing and order attribution, organized by feature modules
(guests, orders, billing, settlement, ...) with a thin Flask controller layer
on top of service/repository layers.
"""
