"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

from collections import OrderedDict
from collections.abc import AsyncIterable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import unquote, urlsplit, urlunsplit

from .exceptions import InvalidRequestUrlException


class FieldPosition(Enum):
    """The type of a field.

    Defines its placement in a request or response.
    """

    HEADER = 0
    """Header field.

    In HTTP this is a header as defined in :rfc:`9110#section-6.3`.
    """

    TRAILER = 1
    """Trailer field.

    In HTTP this is a trailer as defined in :rfc:`9110#section-6.5`.
    """


class Field:
    """A name-value pair representing a single field in a request or response.

    The kind will dictate metadata placement within a message, for example as a
    header or trailer field in an HTTP request. Repeated values are kept in
    insertion order and are joined by ``as_string``.
    """

    def __init__(
        self,
        *,
        name: str,
        values: Iterable[str] | None = None,
        kind: FieldPosition = FieldPosition.HEADER,
    ):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []
        self.kind = kind

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def set(self, values: list[str]) -> None:
        """Overwrite existing field values."""
        self.values = values

    def remove(self, value: str) -> None:
        """Remove all matching entries from list."""
        try:
            while True:
                self.values.remove(value)
        except ValueError:
            return

    def as_string(self, delimiter: str = ", ") -> str:
        """Get delimited string of all values.

        Values are joined verbatim, without quoting, so a single value is
        returned unchanged.
        """
        return delimiter.join(self.values)

    def as_tuples(self) -> list[tuple[str, str]]:
        """Get list of ``name, value`` tuples where each tuple represents one
        value."""
        return [(self.name, val) for val in self.values]

    def __eq__(self, other: object) -> bool:
        """Name, values, and kind must match.

        Values order must match.
        """
        if not isinstance(other, Field):
            return False
        return (
            self.name == other.name
            and self.kind is other.kind
            and self.values == other.values
        )

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, value={self.values!r}, kind={self.kind!r})"


class Fields:
    """Collection of header and trailer entries mapped by name.

    Lookups are case-insensitive. Each stored :class:`Field` keeps the name
    spelling it was created with.
    """

    def __init__(
        self,
        initial: Iterable[Field] | None = None,
    ):
        init_fields = list(initial) if initial is not None else []
        init_field_names = [self._normalize_field_name(fld.name) for fld in init_fields]
        fname_counter = {
            fname: init_field_names.count(fname) for fname in init_field_names
        }
        repeated_names_exist = len(init_fields) > 0 and max(fname_counter.values()) > 1
        if repeated_names_exist:
            non_unique_names = [name for name, num in fname_counter.items() if num > 1]
            raise ValueError(
                "Field names of the initial list of fields must be unique. The "
                "following normalized field names appear more than once: "
                f"{', '.join(non_unique_names)}."
            )
        init_tuples = zip(init_field_names, init_fields)
        self.entries: OrderedDict[str, Field] = OrderedDict(init_tuples)

    def set_field(self, field: Field) -> None:
        """Alias for __setitem__ to utilize the field.name for the entry key."""
        self.__setitem__(field.name, field)

    def __setitem__(self, name: str, field: Field) -> None:
        """Set or override entry for a Field name."""
        normalized_name = self._normalize_field_name(name)
        normalized_field_name = self._normalize_field_name(field.name)
        if normalized_name != normalized_field_name:
            raise ValueError(
                f"Supplied key {name} does not match Field.name "
                f"provided: {normalized_field_name}"
            )
        self.entries[normalized_name] = field

    def get_field(self, name: str) -> Field:
        """Alias for __getitem__."""
        return self.__getitem__(name)

    def get(self, name: str, default: Field | None = None) -> Field | None:
        return self.entries.get(self._normalize_field_name(name), default)

    def __getitem__(self, name: str) -> Field:
        """Retrieve Field entry."""
        normalized_name = self._normalize_field_name(name)
        return self.entries[normalized_name]

    def __delitem__(self, name: str) -> None:
        """Delete entry from collection."""
        normalized_name = self._normalize_field_name(name)
        del self.entries[normalized_name]

    def remove_field(self, name: str) -> None:
        """Alias for __delitem__."""
        self.__delitem__(name)

    def get_by_type(self, kind: FieldPosition) -> list[Field]:
        """Helper function for retrieving specific types of fields.

        Used to grab all headers or all trailers.
        """
        return [entry for entry in self.entries.values() if entry.kind is kind]

    def extend(self, other: "Fields") -> None:
        """Merges ``entries`` of ``other`` into the current ``entries``.

        For every `Field` in the ``entries`` of ``other``: If the normalized name
        already exists in the current ``entries``, the values from ``other`` are
        appended. Otherwise, the ``Field`` is added to the list of ``entries``.
        """
        for other_field in other:
            try:
                cur_field = self.__getitem__(other_field.name)
                for other_value in other_field.values:
                    cur_field.add(other_value)
            except KeyError:
                self.__setitem__(other_field.name, other_field)

    def _normalize_field_name(self, name: str) -> str:
        """Normalize field names.

        For use as key in ``entries``.
        """
        return name.lower()

    def __eq__(self, other: object) -> bool:
        """Entries must match in values but not order."""
        if not isinstance(other, Fields):
            return False
        return dict(self.entries) == dict(other.entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self._normalize_field_name(key) in self.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"Fields({self.entries})"


@dataclass(kw_only=True, frozen=True)
class URI:
    """Universal Resource Identifier, target location for a
    :py:class:`StorageRequest`."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    username: str | None = None
    """Username part of the userinfo URI component."""

    password: str | None = None
    """Password part of the userinfo URI component."""

    host: str
    """The hostname, for example ``myaccount.blob.core.windows.net``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI, still percent-encoded."""

    query: str | None = None
    """Query component of the URI as string, still percent-encoded."""

    fragment: str | None = None
    """Part of the URI specification, but may not be transmitted by a client."""

    @property
    def netloc(self) -> str:
        """Construct netloc string in format ``{username}:{password}@{host}:{port}``

        ``username``, ``password``, and ``port`` are only included if set.
        ``password`` is ignored, unless ``username`` is also set. Add square
        brackets around the host if it is a valid IPv6 endpoint URI per
        :rfc:`3986#section-3.2.2`.
        """
        if self.username is not None:
            password = "" if self.password is None else f":{self.password}"
            userinfo = f"{self.username}{password}@"
        else:
            userinfo = ""

        if self.port is not None:
            port = f":{self.port}"
        else:
            port = ""

        host = self.host
        if ":" in host:
            host = f"[{host}]"

        return f"{userinfo}{host}{port}"

    def build(self) -> str:
        """Construct URI string representation.

        Validate host. Returns a string of the form
        ``{scheme}://{username}:{password}@{host}:{port}{path}?{query}#{fragment}``
        """
        components = (
            self.scheme,
            self.netloc,
            self.path or "",
            self.query or "",
            self.fragment or "",
        )
        return urlunsplit(components)

    def query_params(self) -> list[tuple[str, str]]:
        """Split the query into percent-decoded ``(key, value)`` pairs.

        Pairs are returned in the order they appear. A parameter without ``=``
        has an empty value. ``+`` is kept literally rather than read as a space.

        :raises InvalidRequestUrlException: If an escape does not decode to UTF-8.
        """
        if not self.query:
            return []
        params: list[tuple[str, str]] = []
        for part in self.query.split("&"):
            if not part:
                continue
            key, _, value = part.partition("=")
            params.append((decode_url_component(key), decode_url_component(value)))
        return params

    def to_dict(self) -> dict[str, Any]:
        return {
            "scheme": self.scheme,
            "host": self.host,
            "port": self.port,
            "path": self.path,
            "query": self.query,
            "username": self.username,
            "password": self.password,
            "fragment": self.fragment,
        }

    @classmethod
    def from_url(cls, url: str) -> "URI":
        """Decompose an absolute, already encoded URL.

        :raises InvalidRequestUrlException: If the URL has no scheme or host, or
            can't be split by :func:`urllib.parse.urlsplit`.
        """
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError as e:
            raise InvalidRequestUrlException(
                f"Unable to parse request URL {url!r}: {e}"
            ) from e
        if not parts.scheme or not parts.hostname:
            raise InvalidRequestUrlException(
                f"Expected an absolute request URL but received {url!r}."
            )
        return cls(
            scheme=parts.scheme,
            username=parts.username,
            password=parts.password,
            host=parts.hostname,
            port=port,
            path=parts.path or None,
            query=parts.query or None,
            fragment=parts.fragment or None,
        )


def decode_url_component(component: str) -> str:
    """Percent-decode a path or query component as strict UTF-8.

    Invalid escapes are rejected rather than replaced, so distinct encoded
    components never decode to the same text.

    :raises InvalidRequestUrlException: If the decoded bytes are not UTF-8.
    """
    try:
        return unquote(component, errors="strict")
    except UnicodeDecodeError as e:
        raise InvalidRequestUrlException(
            f"URL component {component!r} is not percent-encoded UTF-8."
        ) from e


@dataclass(kw_only=True)
class StorageRequest:
    """HTTP request for a storage service."""

    destination: URI
    method: str = "GET"
    fields: Fields = field(default_factory=Fields)
    body: AsyncIterable[bytes] | Iterable[bytes] | None = None

    @classmethod
    def from_url(
        cls,
        *,
        method: str,
        url: str,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        body: AsyncIterable[bytes] | Iterable[bytes] | None = None,
    ) -> "StorageRequest":
        """Build a request from a URL string and plain headers.

        Headers may be a mapping or a sequence of ``(name, value)`` pairs.
        Repeated names, in any casing, are collected into one :class:`Field`.
        """
        if headers is None:
            header_items: Iterable[tuple[str, str]] = ()
        elif isinstance(headers, Mapping):
            header_items = headers.items()
        else:
            header_items = headers

        fields = Fields()
        for name, value in header_items:
            if name in fields:
                fields[name].add(value)
            else:
                fields.set_field(Field(name=name, values=[value]))

        return cls(
            destination=URI.from_url(url),
            method=method,
            fields=fields,
            body=body,
        )
