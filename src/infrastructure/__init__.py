"""Infrastructure Layer.

File I/O adapters that implement the domain ports and return domain
Value Objects.
"""
