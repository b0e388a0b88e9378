"""
Deterministic pricing helpers.

Pure Python math. No I/O, no database.
Every helper here is total: malformed input degrades to zero or a catalog
default instead of raising, because line items are priced while the user is
still typing them in.
"""
