"""
Infrastructure layer - external service integrations.

- storage: Google Cloud Storage client and in-memory mock

These wrappers translate between the SDK's objects and our records.
"""
