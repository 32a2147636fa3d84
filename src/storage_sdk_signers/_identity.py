"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from base64 import b64decode
import binascii
from dataclasses import dataclass, field

from .exceptions import InvalidCredentialException
from .interfaces.identity import SharedKeyIdentity


@dataclass(kw_only=True, frozen=True)
class StorageSharedKeyIdentity(SharedKeyIdentity):
    account_name: str
    account_key: str = field(repr=False)

    @property
    def decoded_key(self) -> bytes:
        """The raw account key bytes used as the HMAC key."""
        return decode_account_key(
            account_name=self.account_name, account_key=self.account_key
        )


def decode_account_key(*, account_name: str, account_key: str) -> bytes:
    """Decode a base64 account key into the raw HMAC key.

    :raises InvalidCredentialException: If the key is not valid base64.
    """
    try:
        return b64decode(account_key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidCredentialException(
            f"The account key for {account_name} is not valid base64."
        ) from e
