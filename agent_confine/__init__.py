"""agent-confine.

This package drives a multi-turn, tool-calling conversation with a language
model while confining the shell commands the model asks for.

Core subpackages
----------------

- ``agent_confine.agent_core``:

  - A LangGraph-based turn loop (``runtime``) with atomic tool batches,
    cancellation rollback and isolated pre-task conversations.
  - A confinement layer (``sandbox``): allow-list policy compiler, denial
    classifier, confined/passthrough executors and fallback negotiation.
  - The tool schema and the plain tool dispatcher (``tools``).
  - An async chat completions client.

- ``agent_confine.core``:

  - Logging configuration and environment-driven settings.

Typical workflow
----------------

1. Build an ``AgentConfig`` (or read ``AgentSettings`` from the environment).
2. Construct an ``Orchestrator``, injecting approval and display hooks.
3. ``await orchestrator.chat(text)`` for each user input.
"""
