"""Authentication and authorization.

Learn: Sessions are signed JWTs whose unsigned fingerprints are kept in
the tokens table. A token is honoured only while its fingerprint is
stored, its signature verifies, and its (user, account) claims match a
real user — so logout is a DELETE, not a wait-for-expiry.

Modules, leaf-first: password (bcrypt), jwt (codec + fingerprint),
store (fingerprint persistence), resolver (token → user), sessions
(start/end), dependencies (FastAPI guards and wiring).
"""
