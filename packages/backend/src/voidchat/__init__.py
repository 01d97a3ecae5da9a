"""VOID — identity and conversation persistence for a chat assistant.

Accounts (password or Google sign-in), security-question recovery,
stateless bearer tokens, and an append-only per-account transcript that
is fed to an external completion model.
"""

__version__ = "0.1.0"
