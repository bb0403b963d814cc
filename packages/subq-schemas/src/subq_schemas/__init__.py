"""Pydantic schemas shared by the subq translation queue."""
