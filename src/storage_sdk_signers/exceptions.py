"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""


class BaseStorageSDKException(Exception):
    """Top-level exception to capture SDK-related errors."""

    ...


class InvalidRequestUrlException(BaseStorageSDKException, ValueError):
    """The request URL can't be split into a path and query."""

    ...


class InvalidCredentialException(BaseStorageSDKException, ValueError):
    """The account name or base64 account key can't be used for signing."""

    ...

