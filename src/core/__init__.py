"""
Core helpers shared by every part of the card image pipeline.
"""

__version__ = "1.0.0"
