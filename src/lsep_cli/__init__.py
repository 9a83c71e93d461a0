"""Command-line front end for the LSEP library."""
