"""
Token Service package for the Access Token Service.

This package exposes the FastAPI application that issues, verifies,
refreshes and revokes signed bearer tokens:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.factory: Builds the token manager and its collaborators from settings.
- app.signing: Algorithms, key material and the compact JWS codec.
- app.validation: Time-window and claim checks.
- app.revocation: TTL-bounded revocation store and its cache backends.
- app.parsers: Extractors that find a token in an inbound request.
- app.tokens: Token value, claim defaults and the lifecycle manager.

Design notes:
- Module import must not perform network calls; the Redis backend only
  connects in the application startup hook.
- Use the shared/ utilities for logging, metrics, configuration and errors.
- The manager holds configuration only; revocation state lives in the cache.
"""
