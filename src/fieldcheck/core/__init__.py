"""
Toolkit-independent parts of the field checker: configuration, errors,
validation requests and threaded validators.
"""
