"""Error taxonomy for the OpenWeatherMap clients."""


class WeatherServiceError(Exception):
    """Base exception for weather and geocoding failures."""
    pass


class ValidationError(WeatherServiceError):
    """Raised when a query or city name is blank or too short."""
    pass


class NotFoundError(WeatherServiceError):
    """Raised when the API reports the location does not exist."""
    pass


class AuthError(WeatherServiceError):
    """Raised when the API rejects the configured key."""
    pass


class RateLimitError(WeatherServiceError):
    """Raised when the API throttles the caller."""
    pass


class NetworkError(WeatherServiceError):
    """Raised when the request could not be completed."""
    pass


class UpstreamStatusError(NetworkError):
    """Raised for unexpected non-2xx responses."""

    def __init__(self, status_code: int, reason: str):
        super().__init__(reason)
        self.status_code = status_code
        self.reason = reason


class EmptyResponseError(WeatherServiceError):
    """Raised when the transport succeeded but the payload is missing."""
    pass
