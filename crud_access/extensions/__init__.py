"""
Extensions for crud-access.
"""
