"""Business services for the catalog, orders and payments."""
