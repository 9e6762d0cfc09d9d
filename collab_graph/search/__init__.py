"""
collab_graph.search - Finding projects and persons by their common name.

Modules:
    resolver      - SearchResolver: normalization, local match, debounced remote match.
    lookup_client - EncryptionLookupClient for encrypted person names.
"""
