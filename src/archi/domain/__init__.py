"""
Domain layer - archive entities, result types and the storage ports the
application layer depends on.
"""
