"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0

Storage SDK Signers provides stand-alone Shared Key signing for storage REST
requests, for use with HTTP tools such as AioHTTP, Curl, Requests, urllib3, etc.
"""

from __future__ import annotations

from ._http import URI, Field, Fields, StorageRequest
from ._identity import StorageSharedKeyIdentity
from ._version import __version__
from .signers import (
    AsyncSharedKeySigner,
    SharedKeySigner,
    SharedKeySigningProperties,
    compute_signature,
)

__license__ = "Apache-2.0"
__version__ = __version__

__all__ = (
    "AsyncSharedKeySigner",
    "Field",
    "Fields",
    "SharedKeySigner",
    "SharedKeySigningProperties",
    "StorageRequest",
    "StorageSharedKeyIdentity",
    "URI",
    "compute_signature",
)
