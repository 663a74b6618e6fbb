"""registrations/ -- Attendee sign-ups for published events.

Layer rule: registrations/ imports only stdlib, third-party libraries and
core/. Who may read a registration is decided in the API layer.
"""
