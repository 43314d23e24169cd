"""Status entity, timeline composition and counter-cache maintenance."""

__version__ = "0.1.0"
