"""auth/ -- Authentication and authorization package for the Arena API.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/, catalog/, or spaces/.
api/ imports from auth/, not the other way around.
"""
