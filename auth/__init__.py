"""auth/ -- Authentication and login gating for the LSA admin portal.

Layer rule: auth/ imports core/, tenants/ and third-party libraries only.
It does NOT import from api/. api/ imports from auth/, not the other way
around.
"""
