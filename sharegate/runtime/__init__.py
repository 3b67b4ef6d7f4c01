"""Durable workflow runtime: persisted instances, continuations and the sharing orchestrator."""
