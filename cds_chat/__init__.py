"""CDS Chat: interactive chat client for an LLM completion endpoint."""
