"""Praxis Calc command-line interface."""
