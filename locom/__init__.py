"""Locom - content admission, feed radius and municipality sync."""
