"""
Orders package.

The order store, the payment lifecycle coordinator and the order query and
administration service.
"""
