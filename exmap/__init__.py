"""Model of process address space usage, read from the Linux /proc filesystem.

The main entry point is :class:`exmap.pool.Pool`.
"""
