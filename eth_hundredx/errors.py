"""Exceptions raised by the 100x client.

- Signing and encoding problems are raised before any network I/O happens

- Transport problems wrap the underlying ``requests`` or ``websockets`` exception

- Non-2xx HTTP responses and JSON-RPC error envelopes are *not* exceptions,
  they are handed back to the caller as is
"""


class HundredXError(Exception):
    """Base class for all 100x client errors."""


class MalformedKey(HundredXError, ValueError):
    """Private key is not 32 bytes of hex or is not a valid secp256k1 scalar."""


class MalformedAddress(HundredXError, ValueError):
    """Value for an ``address`` field is not a 20-byte hex string."""


class UnknownPrimaryType(HundredXError, ValueError):
    """Primary type is not in the EIP-712 schema registry."""


class SchemaMismatch(HundredXError, ValueError):
    """Message fields do not match the schema of the primary type."""


class OutOfRange(HundredXError, ValueError):
    """Numeric value does not fit its declared ``uintN`` width."""


class EncodingFailure(HundredXError):
    """Outbound payload could not be serialised to JSON."""


class TransportFailure(HundredXError):
    """HTTP or WebSocket call failed before a response was received."""


class TransportTimeout(TransportFailure):
    """HTTP request deadline was exceeded."""
