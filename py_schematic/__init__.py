"""World to schematic map point mapping."""

__version__ = "0.1.0"
