"""topoplan - declarative infrastructure topology planner and executor."""

__version__ = "0.1.0"
