"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from collections.abc import Iterator
from typing import Protocol


class FieldInterface(Protocol):
    """A name with one or more values, such as an HTTP header."""

    name: str
    values: list[str]

    def as_string(self, delimiter: str = ", ") -> str:
        """Serialize the values into a single string."""
        ...


class FieldsInterface(Protocol):
    """A case-insensitive collection of fields."""

    def __contains__(self, key: object) -> bool: ...

    def __getitem__(self, name: str) -> FieldInterface: ...

    def __iter__(self) -> Iterator[FieldInterface]: ...


class URIInterface(Protocol):
    """A URI as described in :rfc:`3986`."""

    scheme: str
    host: str
    port: int | None
    path: str | None
    query: str | None

    @property
    def netloc(self) -> str: ...

    def build(self) -> str: ...

    def query_params(self) -> list[tuple[str, str]]:
        """Percent-decoded query parameters in the order they appear."""
        ...


class HTTPRequest(Protocol):
    """Read-only view of an outbound HTTP request used for signing."""

    destination: URIInterface
    method: str
    fields: FieldsInterface
