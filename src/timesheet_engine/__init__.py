"""Time and pay engine: hours, rates and payroll exports from time entries."""

__version__ = "0.1.0"
