"""Utility helpers: logging setup and async plumbing."""
