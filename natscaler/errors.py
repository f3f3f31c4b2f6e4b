"""Error types shared across the package."""

from __future__ import annotations


class HTTPStatusCodeError(Exception):
    """An HTTP response arrived with a status code other than the one expected."""

    def __init__(self, code: int, body: bytes = b"") -> None:
        self.code = code
        self.body = bytes(body)
        super().__init__(code, self.body)

    def __str__(self) -> str:
        text = self.body.decode("utf-8", errors="replace") if self.body else "no body"
        return f"HTTP Error with status {self.code}: {text}"