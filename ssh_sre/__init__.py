"""SSH SRE API – single-host remote diagnostics over a resilient SSH session."""

__version__ = "2.0.0"
