"""
Signing package.

Holds the supported JWS algorithms, the signer configuration (shared secret
or private/public key pair) and the codec that turns claim sets into compact
tokens and back.

Key points:
- Key values are inline PEM text or a ``file://`` path.
- Encrypted private keys are unlocked with the configured passphrase.
- A token whose header names a different algorithm is never verified.
"""
