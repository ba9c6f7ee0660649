from __future__ import annotations


class TokenStore:
    """Holds the current GitHub access token.

    The gateway calls the store on every request, so sign-in and sign-out are
    picked up without rebuilding the gateway.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def __call__(self) -> str | None:
        return self._token

    def set(self, token: str) -> None:
        self._token = token.strip() or None

    def clear(self) -> None:
        self._token = None
