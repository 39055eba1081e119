"""
Revocation package.

A TTL-keyed set of revoked token identifiers on top of a small cache
interface, with an in-process backend and a Redis backend. Entries always
carry a TTL, so revocation lapses once the token could no longer be used.
"""
