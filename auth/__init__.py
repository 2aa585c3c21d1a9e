"""auth/ -- Authentication and authorization package for DataMap.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/ or mappings/.
api/ imports from auth/, not the other way around.
"""
