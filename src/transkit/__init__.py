"""Transkit - batch file translation using LLMs.

This package translates files and directory trees with a remote completion
service, running files concurrently with retries and producing a usage report.
"""

__version__ = "0.1.0"
__license__ = "MIT"
