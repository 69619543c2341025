"""
Qt widgets and controllers of the field checker.
"""
