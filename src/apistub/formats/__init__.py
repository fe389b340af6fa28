"""Concrete readers and writers for binary and text API descriptions."""
