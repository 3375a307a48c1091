"""
Zone Watch Scanners

- tree.py - manual full-tree rule runs
"""
