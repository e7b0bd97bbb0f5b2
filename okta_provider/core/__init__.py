"""Core Logic Module

Module Structure:
    - okta/          : Low-level Okta management API client
    - mutex.py       : Named per-key locks guarding read-modify-write
    - collection.py  : Pure append/remove on a parent's collection field
    - validators.py  : Input validation (URLs, ids, import ids)

Usage Pattern:
    These modules are NOT auto-imported. Import explicitly when needed:
        from okta_provider.core.mutex import MutexKV
        from okta_provider.core.collection import append, remove
"""
