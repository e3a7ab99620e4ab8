"""HTTP service and command line entry points."""
