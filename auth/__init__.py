"""auth/ -- Identity and resource-access-control package for EventReg.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or events/.
api/ and events/ import from auth/, not the other way around.
"""
