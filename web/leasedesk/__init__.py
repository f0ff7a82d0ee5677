"""Apartment lease and purchase request workflow."""
