"""
Budget calculation engine.

Turns a user-authored template plus filled-in items into a priced total
under one of the pricing strategies (default, industrial, service).
"""
