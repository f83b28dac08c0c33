"""Builders turning sections and fields into document description blocks."""
