"""Adapters: the filesystem, subprocess and network primitives probes build on."""
