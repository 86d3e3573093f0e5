"""
Nfoarr - NFO acquisition and classification for usenet release indexes.
"""

__version__ = "1.0.0"
