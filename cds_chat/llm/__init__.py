"""Completion endpoint client and model catalog."""
