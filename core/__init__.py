"""core/ -- Kernel: configuration, error taxonomy, pagination, moderation client, crypto pool.

Layer rule: core/ does NOT import from api/, auth/, or qa/.
"""
