"""Operational scripts for the Sentinel metric store."""
