"""Routers HTTP por contexto (audit / reports)."""
