"""Services Layer — result store, range fan-out and the single-value path.

Invariants:
    - Only ResultStore touches the database
    - RangeCalculator and FactorialService depend on the ResultRepository protocol
"""
