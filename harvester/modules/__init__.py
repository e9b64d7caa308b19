"""Modules package - Domain modules with repository pattern."""
