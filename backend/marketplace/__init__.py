"""Vendor marketplace booking core."""
