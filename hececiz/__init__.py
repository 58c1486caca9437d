"""
Hece Ciz - Syllable Handwriting Coach

A guided handwriting-practice tool for early readers.
Hear a two-letter syllable, draw it, and get instant feedback from a vision model.
"""

__version__ = "0.1.0"
