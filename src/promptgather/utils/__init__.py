"""Filesystem helpers shared by the gather steps."""
