"""
Database package: ORM models, async session factory and Alembic migrations.
"""
