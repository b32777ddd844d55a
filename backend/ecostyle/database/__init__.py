"""Database package: declarative base, async engine and session management."""
