"""Offline harness: analyser emulation and frame export."""
