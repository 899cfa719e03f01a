"""Notification persistence and push fan-out service.

Layers follow the usual split: ``domain`` holds entities and typed errors,
``infrastructure`` the SQLAlchemy store, token registry and push gateway,
``application`` the dispatch orchestration and ``interfaces`` the HTTP API.
"""
