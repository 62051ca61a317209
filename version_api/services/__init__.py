"""Services Layer — IO-bound implementations of the core protocols.

Invariants:
    - Every class here satisfies a Protocol from core/repository_protocols.py
"""
