"""Packaged comment-syntax tables."""
