"""Standup Order Bot: random speaking orders for standup meetings."""

__version__ = "0.1.0"
