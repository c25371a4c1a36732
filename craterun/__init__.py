"""craterun: run a crate's binary, installing it into a private sandbox first."""

__version__ = "0.1.0"
