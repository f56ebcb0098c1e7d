"""
node-doctor: diagnose the Node.js toolchain installed on this machine.
"""

__version__ = "0.1.0"
