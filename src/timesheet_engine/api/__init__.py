"""HTTP surface for timesheet exports."""
