"""accounts/ -- User account and authentication core for the e-commerce API.

Password hashing, session-token issuance, the account store abstraction and
the account service that ties them together.

Layer rule: accounts/ imports only stdlib + third-party libraries and core/.
It does NOT import from api/. api/ and main.py import from accounts/, not the
other way around.
"""
