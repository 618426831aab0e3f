"""
core - domain-agnostic runtime pieces

Shared building blocks that know nothing about hotels:
- engine: declarative state machine used to guard entity lifecycles
- notification: outbound notification channel interface and registry
- storage: document store interface for rendered artifacts

The hotelos package implements the concrete channels and stores.
"""
