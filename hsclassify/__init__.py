"""
HS Code Classifier — Production Package
=======================================
Predicts a customs Harmonized-System (HS) code for a product description,
explains it, and keeps a per-user history of every classification.

Layer map
─────────────────────────────────────────────────────
  config/       Settings & prompt templates
  domain/       Pure business objects (models, exceptions) — no I/O
  ports/        Abstract interfaces (Python Protocols)
  adapters/     Concrete implementations of each Port (Gemini, Postgres…)
  services/     Orchestration logic; depends only on Ports, never Adapters
  interfaces/   Delivery layer: CLI, Streamlit UI
  tests/        Full test suite: unit / integration / e2e

Swapping any external dependency (LLM, history store, auth provider):
  1. Write a new adapter in adapters/ implementing the relevant Port
  2. Change the wiring in services/container.py
"""
__version__ = "1.0.0"
