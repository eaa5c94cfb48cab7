"""Lint rules, one module per rule, grouped by category."""
