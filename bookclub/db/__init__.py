"""Database handle and declarative base."""
