"""
Pydantic models used by the Morpha runtime.

- conversation_models: ConversationHeader + Turn + Personality
"""
