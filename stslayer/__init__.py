"""
Status Slayer

Configurable status command for Sway using the swaybar protocol. Runs
user-defined shell commands on their own schedules and streams the merged
status to the bar.
"""

__version__ = "0.1.0"
