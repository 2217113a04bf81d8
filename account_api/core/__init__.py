"""
Core utilities shared across the account API.

This package hosts configuration (env vars, storage backend selection),
password hashing and logging setup. Services and routers depend on these
primitives instead of reading os.environ or importing argon2 directly.
"""
