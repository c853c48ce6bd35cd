"""Journey planner for fixed-route transit networks."""

__version__ = "0.1.0"
