"""
Shared infrastructure: configuration, logging, error handling, LLM
factories, JSON parsing and MongoDB repositories.
"""
