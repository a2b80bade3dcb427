"""Lumo canvas: itinerary board of Lumes and the links between them."""

__version__ = "0.1.0"
