"""events/ -- Event records owned by the organizer who published them.

Layer rule: events/ imports only stdlib, third-party libraries and core/.
Ownership enforcement lives in the API layer (auth.guard.authorize).
"""
