"""Assistant - answers questions about a user's finances.

The assistant never shows the model a real identifier. It consists of:
- Query Enhancer: rewrites time-sensitive questions into search queries
- Prompt Builder: tokenizes the aggregated context into model input
- Responder: calls the model with retry
- Orchestrator: ties them together and restores real names in the answer
"""
