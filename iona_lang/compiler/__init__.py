"""Emission driver and `iona-emit` command line."""
