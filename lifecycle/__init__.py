"""SaaS subscription lifecycle reconciler.

Resolves pending subscription configuration operations against the GitHub
Actions runs that carry them out, archives them, and publishes a
completion event for each one that concluded.
"""
