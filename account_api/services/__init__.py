"""
High-level use cases for the account API.

Routers call AccountService instead of touching the record store directly.
"""
