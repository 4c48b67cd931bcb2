"""Decoding, filtering and activity helpers for location records."""
