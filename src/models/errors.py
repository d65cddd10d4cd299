# src/models/errors.py

"""Exception hierarchy for every prixnc_ai component."""


class PrixNcError(Exception):
    """Base class for all application errors."""


class UpstreamError(PrixNcError):
    """The catalog API answered with a non-2xx status or unusable JSON."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        details: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class NotFoundError(PrixNcError):
    """A lookup returned zero candidates or zero selling points."""


class OcrEngineError(PrixNcError):
    """The text-recognition engine failed or returned no text payload."""


class ModelParseError(PrixNcError):
    """The language model reply is not a JSON array (handled internally)."""


class LanguageModelError(PrixNcError):
    """The language model could not be reached or refused the request."""


class AuthenticationError(PrixNcError):
    """Unknown email or wrong password."""


class DuplicateEmailError(PrixNcError):
    """A user with this email already exists."""


class InvalidPasswordError(PrixNcError):
    """The password cannot be hashed (bcrypt reads at most 72 bytes)."""
