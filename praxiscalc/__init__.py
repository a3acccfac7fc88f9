"""Praxis Calc - Personnel demand and privacy-compliant HR KPIs for dental practices."""

__version__ = "1.2.0"
