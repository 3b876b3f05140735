"""Helpers shared by the directory scripts (record IO, image checks, HTML patching)."""
