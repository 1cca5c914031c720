"""dctl - command-line client for a remote deployment director."""

__version__ = "0.1.0"
