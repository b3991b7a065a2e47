"""Proxy inverso same-origin hacia la API."""
