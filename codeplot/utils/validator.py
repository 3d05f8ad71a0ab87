"""Input validation — checks that the feature request is a non-empty string before planning starts."""


def validate_feature_request(feature_request: str) -> str:
    """Validate that the feature request is a non-empty string.

    Returns the stripped input on success.
    Raises ValueError if input is empty or whitespace-only.
    """
    if not isinstance(feature_request, str) or not feature_request.strip():
        raise ValueError("Feature request must be a non-empty string.")
    return feature_request.strip()
