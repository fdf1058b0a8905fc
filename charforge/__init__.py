"""
charforge - retrieval-augmented context and tolerant response parsing
for guided D&D 5e character creation on a local Ollama model.
"""

__version__ = "0.1.0"
