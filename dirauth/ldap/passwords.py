"""Password attribute encoding, one entry per directory implementation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .models import Implementation


def encode_plain(new_password: str) -> str:
    # The directory hashes userPassword server-side.
    return new_password


def encode_unicode_pwd(new_password: str) -> bytes:
    """Active Directory unicodePwd value: the quoted password as UTF-16LE, no BOM."""
    return f'"{new_password}"'.encode("utf-16-le")


@dataclass(frozen=True)
class PasswordEncoding:
    attribute: str
    encode: Callable[[str], str | bytes]

    def replacements(self, new_password: str) -> dict[str, list[str | bytes]]:
        return {self.attribute: [self.encode(new_password)]}


PASSWORD_ENCODINGS: dict[Implementation, PasswordEncoding] = {
    Implementation.GENERIC: PasswordEncoding("userPassword", encode_plain),
    Implementation.ACTIVE_DIRECTORY: PasswordEncoding("unicodePwd", encode_unicode_pwd),
}
