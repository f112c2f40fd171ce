"""
Postboard: a small content backend.

Serves paginated posts with image uploads and author/admin-gated
mutations, the store list read by the map renderer, and access tokens.
"""
