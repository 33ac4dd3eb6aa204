"""Operating system interfaces.

Everything here reads the Linux process information filesystem.
"""
