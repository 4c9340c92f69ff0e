"""Command line entry points for the fast-connect saved state."""
