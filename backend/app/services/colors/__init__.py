"""
Palette Extractor Colors Module

Strided sampling, exact-key color counting, top-K ranking and formatting
that turn a decoded image into an ordered dominant-color palette.
"""

__version__ = "1.0.0"
