"""Product catalog package."""
