"""
Core of the storage facade.

Framework-agnostic: no FastAPI, no Google SDK imports. The facade talks to
storage only through the ObjectStore protocol, so it can be tested against
an in-memory store.
"""
