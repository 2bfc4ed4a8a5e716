"""ConsensusWarn - flag changes that reach sensitive functions."""

__version__ = "0.1.0"
