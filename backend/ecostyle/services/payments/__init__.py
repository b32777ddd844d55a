"""
Payments package.

Checkout pricing and the PayPal REST gateway client.
"""
