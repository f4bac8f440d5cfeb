"""auth/ -- Credentials, session tokens and the Auth Gate for the Q&A service.

Layer rule: auth/ imports only core/ plus stdlib and third-party libraries.
It does NOT import from api/ or qa/.
api/ imports from auth/, not the other way around.
"""
