"""Exceptions raised by openai-shim.

Errors coming from litellm or the openai SDK are not wrapped and reach the
caller as-is.
"""


class ShimError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(ShimError, ValueError):
    """The resolved configuration failed validation, or a config source is malformed."""


class ProxyError(ShimError):
    """The SOCKS5 proxy transport could not be set up."""


class EmptyResponseError(ShimError):
    """The provider answered with no choices."""
