"""qa/ -- Questions and answers: domain dataclasses and their store.

Layer rule: qa/ imports only core/ plus third-party libraries. It does NOT
import from api/ or auth/.
"""
