"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Identity(Protocol):
    """An entity available to the client representing who the user is."""

    ...


@runtime_checkable
class SharedKeyIdentity(Identity, Protocol):
    """Account name and base64 account key used for Shared Key signing."""

    account_name: str
    account_key: str
