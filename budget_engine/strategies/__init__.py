"""
Pricing strategies.

Each strategy turns resolved item amounts into a priced total and owns the
validation rules for its domain. Pure Python math, no I/O.
"""
