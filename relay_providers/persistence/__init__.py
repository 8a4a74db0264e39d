"""Collaborator contracts and local implementations.

``interfaces`` declares the record store, credential vault and search-corpus
Protocols the core consumes; ``memory`` and ``sqlite`` provide concrete
stores for tests and local development.
"""
