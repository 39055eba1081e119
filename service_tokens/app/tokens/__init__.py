"""
Token lifecycle package.

- token: Immutable token value with typed accessors.
- claims: Default claim provider and immutable claim-set builder.
- manager: Issue, parse, refresh and invalidate.
- schemas: Request and response models for the HTTP surface.
"""
