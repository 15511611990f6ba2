"""
Core building blocks for crud-access: exceptions and metadata definitions.
"""
