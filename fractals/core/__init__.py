"""Plane geometry, escape-time iteration and fractal types."""
