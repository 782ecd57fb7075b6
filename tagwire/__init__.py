"""tagwire - tagged binary message code generator."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tagwire")
except PackageNotFoundError:
    __version__ = "(local)"
