"""
Runtime package for the Morpha chat session.

This package contains:
- Agents (the session loop driving one conversation)
- Stores (the SQLite conversation archive)
- Models (Pydantic models for conversations and turns)
- The status sink used for progress output
"""
