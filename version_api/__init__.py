"""version-api — HTTP backend serving the latest published versions.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

__version__ = "1.0.0"
