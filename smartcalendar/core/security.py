import hmac

from smartcalendar.core.config import settings


def verify_api_key(api_key: str) -> bool:
    """
    Verify API key against configured valid keys
    """
    valid_keys = settings.VALID_API_KEYS
    if isinstance(valid_keys, str):
        valid_keys = [valid_keys]

    # Constant-time comparison against every configured key
    return any(hmac.compare_digest(api_key, key) for key in valid_keys)
