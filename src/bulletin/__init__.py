"""Bulletin: a service registry that probes and lists registered services."""

__version__ = '0.1.0'
