"""auth/ -- Credential utilities for jaha-api: secure entropy, random tokens, password digests.

Layer rule: auth/ imports only stdlib, third-party libraries, and core.config.
Higher layers (persistence, HTTP) import from auth/, not the other way around.
"""
