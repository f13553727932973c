# src/models/errors.py

"""Exception types shared across the storefront client."""


class StorefrontError(Exception):
    """Base class for all storefront client errors."""


class ValidationError(StorefrontError):
    """User input was rejected before any state was changed."""


class ApiError(StorefrontError):
    """A backend request failed after all attempts.

    ``status_code`` is 0 when the server could not be reached at all.
    """

    _STATUS_MESSAGES: dict[int, str] = {
        0: "Unable to connect to server. Please check if the API is running.",
        400: "Bad request. Please check your data.",
        401: "Unauthorized access.",
        404: "Not found.",
        500: "Server error. Please try again later.",
    }

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.user_message)

    @property
    def user_message(self) -> str:
        """Message suitable for showing in the UI."""
        message = self._STATUS_MESSAGES.get(self.status_code)
        if message is not None:
            return message
        return f"Server Error: {self.status_code} - {self.detail}"
