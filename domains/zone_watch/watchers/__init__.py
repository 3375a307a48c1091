"""
Zone Watch Watchers

- filesystem.py - watchdog observers and directory/file-type matching
"""
