"""tenants/ -- Spa lifecycle status and the access policy it implies.

Layer rule: tenants/ imports only core/ plus third-party libraries. auth/
and api/ import from tenants/, not the other way around.
"""
