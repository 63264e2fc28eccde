"""
API server package: read-only HTTP interface over stored transactions and accounts.
"""
