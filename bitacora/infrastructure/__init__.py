"""Infraestructura: pool PostgreSQL + repositorios (Postgres / in-memory)."""
