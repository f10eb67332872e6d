"""Garbage collection for container package versions."""
