"""dctl command implementations.

Each module holds the typer functions for a group of commands (they only
record what was parsed) and the ``run_*`` bodies the registry wires into the
resolution chain.
"""
