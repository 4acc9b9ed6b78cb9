"""Utility helpers shared across RaveSQL."""
