"""LLM gateway client.

Connects the chat backend to an OpenAI-compatible provider (OpenAI or
Moonshot):
  - Credential Resolver (which key, which source)
  - Client Factory (provider inference, pooled httpx client)
  - Retry Executor (linear backoff for 429 / 5xx / network errors)
  - Connectivity Prober (startup check, degrades instead of failing)
  - Mock Responder (same completion shape, no network)
"""
