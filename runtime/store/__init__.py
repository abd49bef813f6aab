"""
Storage abstractions for the Morpha runtime.

Includes:
- ConversationArchive: append-only SQLite record of conversations and turns
"""
