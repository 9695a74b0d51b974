"""
Vitrine Django HTTP adapter.
Thin framework glue over core/http_api handlers.
"""
