"""
Domain layer - ORM models, schemas and mappers.
"""
