"""
Request parser package.

Extractors read a raw token from an authorization header, a query
parameter, a cookie or a field of the request body. The chain tries them in
configured order and the first non-empty value wins.
"""
