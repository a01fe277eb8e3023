"""
AR Navigation Test Suite

Structure:
- unit/: Unit tests for individual components (geodesy, ingest, scheduler,
  progression, projector, engine, render adapter, config, route lookup)
- integration/: Walks replayed end to end through the engine and the CLI
- fakes.py: deterministic event-loop stand-in for timer-driven code
"""
