"""Feedboard — real-time feedback board server.

Participants submit short "happy"/"sad" notes and up-vote each other's
notes; every connected client sees updates live over a WebSocket.
"""

__version__ = "0.1.0"
