"""Leazr - leasing offers engine (calculator, commissions and offer workflow)."""

__version__ = "1.0.0"
