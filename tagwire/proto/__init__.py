"""Runtime support for tagwire generated Python code."""
