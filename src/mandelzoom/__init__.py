"""Mandelbrot zoom renderer.

A multi-threaded escape-time fractal renderer that turns a stream of viewport
settings into grayscale PNG frames (and optionally a zoom video).
"""

__version__ = "0.1.0"
