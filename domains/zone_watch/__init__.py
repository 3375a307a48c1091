"""
Zone Watch Domain

Keeps the Mark of the Web on downloaded files in line with per-directory
policy:
- marker_store - read/write/remove Zone.Identifier markers
- policy - decide skip / reassign / remove for a file
- watchers - watchdog observers feeding the pending-file tracker
- scheduler - debounced background processing
- scanners - on-demand full-tree rule runs
- statistics - aggregated processing counters
"""

__all__ = [
    "marker_store",
    "policy",
    "tracker",
    "pipeline",
    "reporting",
    "scheduler",
    "statistics",
    "service",
    "watchers",
    "scanners",
]
