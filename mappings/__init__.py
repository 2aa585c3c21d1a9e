"""mappings/ -- Owner-scoped data mapping records for DataMap.

Layer rule: mappings/ imports only core/ plus third-party libraries.
It does NOT import from api/ or auth/. The owner id arrives as a plain int
resolved by the authorization guard.
"""
