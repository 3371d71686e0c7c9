class ChordSwapError(Exception):
    """Base exception for chordswap."""


class ParseError(ChordSwapError):
    """Raised when a chord or Nashville token does not match its grammar."""

    def __init__(self, token: str, reason: str = "invalid chord"):
        self.token = token
        self.reason = reason
        super().__init__(f"{reason}: {token!r}")


class FormatError(ChordSwapError):
    """Raised when a dialect tag has no registered parser."""

    def __init__(self, dialect: str):
        self.dialect = dialect
        super().__init__(f"No parser registered for dialect: {dialect}")


class UnknownKeyError(ChordSwapError):
    """Raised when a key name cannot be resolved to a key signature."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown key: {key}")


class FetchError(ChordSwapError):
    """Raised when an HTTP request for a source document fails."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP {status_code} fetching {url}")


class MissingKeyError(ChordSwapError):
    """Raised when a conversion needs a key that was neither given nor detected."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"A {role} key is required for Nashville numbers")
