"""
Faithful Study core services.

Scripture lookup, verse of the day, search, and AI-generated answers and
studies that always come back with something usable, even when the
upstream scripture provider or the generative service misbehaves.
"""

__version__ = "0.3.0"
