"""
Claim validation package.

Checks the standard time claims (``exp``, ``nbf``, ``iat``) with clock-skew
leeway, and the presence and values of required and expected claims.
Audience matching is any-of: a token listing several audiences is accepted
when one of them is expected.
"""
