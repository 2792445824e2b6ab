"""Exception hierarchy for the Gotchi Petter."""


class PetterError(Exception):
    """Base class for every error raised by the petter components."""


class ConfigError(PetterError):
    """Raised when the process configuration is missing or malformed."""


class OracleError(PetterError):
    """Raised when the gas station cannot provide a usable quote."""


class ChainReadError(PetterError):
    """Raised when a read-only contract call or gas estimation fails."""


class SigningError(PetterError):
    """Raised when a transaction cannot be signed with the wallet key."""


class SubmissionError(PetterError):
    """Raised when the node rejects or fails to mine a signed transaction."""
