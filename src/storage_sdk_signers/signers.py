"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import base64
from collections.abc import Iterable, Mapping
from copy import deepcopy
import datetime
from email.utils import format_datetime
from hashlib import sha256
import hmac
import logging
from typing import TypedDict

from ._http import Field, StorageRequest, decode_url_component
from ._identity import StorageSharedKeyIdentity, decode_account_key
from .exceptions import InvalidCredentialException
from .interfaces.http import FieldsInterface, HTTPRequest, URIInterface
from .interfaces.identity import SharedKeyIdentity

logger = logging.getLogger(__name__)

# Order is significant: each entry owns one line of the string to sign.
SIGNED_STANDARD_HEADERS: tuple[str, ...] = (
    "Content-Encoding",
    "Content-Language",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "If-Modified-Since",
    "If-Match",
    "If-None-Match",
    "If-Unmodified-Since",
    "Range",
)
CANONICAL_HEADER_PREFIX: str = "x-ms-"
SHARED_KEY_SCHEME: str = "SharedKey"


class Configuration:
    """Client-wide options shared by every request a signer handles."""

    ...


class SharedKeySigningProperties(TypedDict, total=False):
    date: str
    version: str


class SharedKeySigner:
    """
    Request signer for applying the storage Shared Key authorization scheme.

    Header values must not contain line breaks. They are signed verbatim, so a
    value with an embedded ``\\n`` yields a string to sign the service will not
    reproduce.
    """

    def __init__(self, *, config: Configuration | None = None):
        self._config = config

    def sign(
        self,
        *,
        signing_properties: SharedKeySigningProperties | None = None,
        request: StorageRequest,
        identity: SharedKeyIdentity,
    ) -> StorageRequest:
        """Generate and apply a Shared Key signature to a copy of the request.

        :param signing_properties: Optional ``date`` and ``version`` used to fill
            in ``x-ms-date`` and ``x-ms-version`` when the request lacks them.
        :param request: A StorageRequest to sign prior to sending to the service.
        :param identity: The storage account name and base64 account key.
        """
        # Copy and prepopulate any missing values in the
        # supplied request and signing properties.
        self._validate_identity(identity=identity)
        new_signing_properties = self._normalize_signing_properties(
            signing_properties=signing_properties
        )
        new_request = self._generate_new_request(request=request)
        self._apply_required_fields(
            request=new_request, signing_properties=new_signing_properties
        )

        string_to_sign = self.string_to_sign(
            request=new_request, account_name=identity.account_name
        )
        signature = self._signature(
            string_to_sign=string_to_sign,
            account_name=identity.account_name,
            account_key=identity.account_key,
        )
        authorization = self.generate_authorization_field(
            account_name=identity.account_name, signature=signature
        )
        new_request.fields.set_field(authorization)

        return new_request

    def compute_signature(
        self, *, request: HTTPRequest, identity: SharedKeyIdentity
    ) -> str:
        """Compute the base64 Shared Key signature of a request.

        The request is only read. Identical inputs always give the same
        signature.

        :raises InvalidCredentialException: If the account name is empty or the
            account key is not base64.
        :raises InvalidRequestUrlException: If the path or query holds percent
            escapes that are not UTF-8.
        """
        self._validate_identity(identity=identity)
        string_to_sign = self.string_to_sign(
            request=request, account_name=identity.account_name
        )
        return self._signature(
            string_to_sign=string_to_sign,
            account_name=identity.account_name,
            account_key=identity.account_key,
        )

    def generate_authorization_field(
        self, *, account_name: str, signature: str
    ) -> Field:
        """Generate the `Authorization` field"""
        return Field(
            name="Authorization",
            values=[f"{SHARED_KEY_SCHEME} {account_name}:{signature}"],
        )

    def string_to_sign(self, *, request: HTTPRequest, account_name: str) -> str:
        """The string to sign lays out every signed part of the request. Comparing
        it with the one the service reports is the quickest way to find a
        signature mismatch.

        It is defined as:
            <VERB>\\n
            <one line per standard header, empty when absent>
            <CanonicalizedHeaders>
            <CanonicalizedResource>

        with the final line break removed.
        """
        standard_fields = self._format_standard_fields(fields=request.fields)
        canonical_fields = self._format_canonical_fields(fields=request.fields)
        canonical_resource = self._format_canonical_resource(
            uri=request.destination, account_name=account_name
        )
        string_to_sign = (
            f"{request.method.upper()}\n"
            f"{standard_fields}"
            f"{canonical_fields}"
            f"{canonical_resource}"
        )[:-1]
        logger.debug("StringToSign:\n%s", string_to_sign)
        return string_to_sign

    def _signature(
        self, *, string_to_sign: str, account_name: str, account_key: str
    ) -> str:
        key = decode_account_key(account_name=account_name, account_key=account_key)
        return base64.b64encode(self._hash(key=key, value=string_to_sign)).decode()

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode("utf-8"), digestmod=sha256).digest()

    def _validate_identity(self, *, identity: SharedKeyIdentity) -> None:
        """Perform runtime checks before attempting signing."""
        if not isinstance(identity, SharedKeyIdentity):
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"StorageSharedKeyIdentity but received {type(identity)}."
            )
        elif not identity.account_name:
            raise InvalidCredentialException(
                "Received an empty account_name. Shared Key signing requires the "
                "name of the storage account the key belongs to."
            )

    def _normalize_signing_properties(
        self, *, signing_properties: SharedKeySigningProperties | None
    ) -> SharedKeySigningProperties:
        # Create copy of signing properties to avoid mutating the original
        new_signing_properties = SharedKeySigningProperties(
            **(signing_properties or {})
        )
        new_signing_properties["date"] = self._resolve_signing_date(
            date=new_signing_properties.get("date")
        )
        return new_signing_properties

    def _generate_new_request(self, *, request: StorageRequest) -> StorageRequest:
        return deepcopy(request)

    def _resolve_signing_date(self, *, date: str | None) -> str:
        if date is None:
            date_obj = datetime.datetime.now(datetime.timezone.utc)
            date = format_datetime(date_obj, usegmt=True)
        return date

    def _apply_required_fields(
        self,
        *,
        request: StorageRequest,
        signing_properties: SharedKeySigningProperties,
    ) -> None:
        # Apply required x-ms-date if neither x-ms-date nor Date are present.
        if "Date" not in request.fields and "x-ms-date" not in request.fields:
            request.fields.set_field(
                Field(name="x-ms-date", values=[signing_properties["date"]])
            )
        version = signing_properties.get("version")
        if version is not None and "x-ms-version" not in request.fields:
            request.fields.set_field(Field(name="x-ms-version", values=[version]))

    def _format_standard_fields(self, *, fields: FieldsInterface) -> str:
        lines = []
        for name in SIGNED_STANDARD_HEADERS:
            value = fields[name].as_string(delimiter=",") if name in fields else ""
            # A zero Content-Length is signed as if the header were absent.
            if name == "Content-Length" and value == "0":
                value = ""
            lines.append(f"{value}\n")
        return "".join(lines)

    def _format_canonical_fields(self, *, fields: FieldsInterface) -> str:
        canonical_fields = sorted(
            (field.name.lower(), field.as_string(delimiter=","))
            for field in fields
            if field.name.lower().startswith(CANONICAL_HEADER_PREFIX)
        )
        return "".join(f"{key}:{value}\n" for key, value in canonical_fields)

    def _format_canonical_resource(
        self, *, uri: URIInterface, account_name: str
    ) -> str:
        canonical_path = self._format_canonical_path(path=uri.path)
        canonical_query = self._format_canonical_query(uri=uri)
        return f"/{account_name}/{canonical_path}\n{canonical_query}"

    def _format_canonical_path(self, *, path: str | None) -> str:
        if path is None:
            return ""
        return decode_url_component(path).removeprefix("/")

    def _format_canonical_query(self, *, uri: URIInterface) -> str:
        grouped_params: dict[str, list[str]] = {}
        for key, value in uri.query_params():
            grouped_params.setdefault(key.lower(), []).append(value)
        # Repeated keys share one line with their values sorted and comma-joined.
        return "".join(
            f"{key}:{','.join(sorted(values))}\n"
            for key, values in sorted(grouped_params.items())
        )


class AsyncSharedKeySigner:
    """
    Request signer for applying the storage Shared Key authorization scheme in
    async clients. Produces the same signatures as :class:`SharedKeySigner`.
    """

    def __init__(self, *, config: Configuration | None = None):
        self._config = config

    async def sign(
        self,
        *,
        signing_properties: SharedKeySigningProperties | None = None,
        request: StorageRequest,
        identity: SharedKeyIdentity,
    ) -> StorageRequest:
        # Copy and prepopulate any missing values in the
        # supplied request and signing properties.
        await self._validate_identity(identity=identity)
        new_signing_properties = await self._normalize_signing_properties(
            signing_properties=signing_properties
        )
        new_request = await self._generate_new_request(request=request)
        await self._apply_required_fields(
            request=new_request, signing_properties=new_signing_properties
        )

        string_to_sign = await self.string_to_sign(
            request=new_request, account_name=identity.account_name
        )
        signature = await self._signature(
            string_to_sign=string_to_sign,
            account_name=identity.account_name,
            account_key=identity.account_key,
        )
        authorization = await self.generate_authorization_field(
            account_name=identity.account_name, signature=signature
        )
        new_request.fields.set_field(authorization)
        return new_request

    async def compute_signature(
        self, *, request: HTTPRequest, identity: SharedKeyIdentity
    ) -> str:
        await self._validate_identity(identity=identity)
        string_to_sign = await self.string_to_sign(
            request=request, account_name=identity.account_name
        )
        return await self._signature(
            string_to_sign=string_to_sign,
            account_name=identity.account_name,
            account_key=identity.account_key,
        )

    async def generate_authorization_field(
        self, *, account_name: str, signature: str
    ) -> Field:
        """Generate the `Authorization` field"""
        return Field(
            name="Authorization",
            values=[f"{SHARED_KEY_SCHEME} {account_name}:{signature}"],
        )

    async def string_to_sign(self, *, request: HTTPRequest, account_name: str) -> str:
        standard_fields = await self._format_standard_fields(fields=request.fields)
        canonical_fields = await self._format_canonical_fields(fields=request.fields)
        canonical_resource = await self._format_canonical_resource(
            uri=request.destination, account_name=account_name
        )
        string_to_sign = (
            f"{request.method.upper()}\n"
            f"{standard_fields}"
            f"{canonical_fields}"
            f"{canonical_resource}"
        )[:-1]
        logger.debug("StringToSign:\n%s", string_to_sign)
        return string_to_sign

    async def _signature(
        self, *, string_to_sign: str, account_name: str, account_key: str
    ) -> str:
        key = decode_account_key(account_name=account_name, account_key=account_key)
        final_hash = await self._hash(key=key, value=string_to_sign)
        return base64.b64encode(final_hash).decode()

    async def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode("utf-8"), digestmod=sha256).digest()

    async def _validate_identity(self, *, identity: SharedKeyIdentity) -> None:
        """Perform runtime checks before attempting signing."""
        if not isinstance(identity, SharedKeyIdentity):
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"StorageSharedKeyIdentity but received {type(identity)}."
            )
        elif not identity.account_name:
            raise InvalidCredentialException(
                "Received an empty account_name. Shared Key signing requires the "
                "name of the storage account the key belongs to."
            )

    async def _normalize_signing_properties(
        self, *, signing_properties: SharedKeySigningProperties | None
    ) -> SharedKeySigningProperties:
        # Create copy of signing properties to avoid mutating the original
        new_signing_properties = SharedKeySigningProperties(
            **(signing_properties or {})
        )
        new_signing_properties["date"] = await self._resolve_signing_date(
            date=new_signing_properties.get("date")
        )
        return new_signing_properties

    async def _generate_new_request(
        self, *, request: StorageRequest
    ) -> StorageRequest:
        return deepcopy(request)

    async def _resolve_signing_date(self, *, date: str | None) -> str:
        if date is None:
            date_obj = datetime.datetime.now(datetime.timezone.utc)
            date = format_datetime(date_obj, usegmt=True)
        return date

    async def _apply_required_fields(
        self,
        *,
        request: StorageRequest,
        signing_properties: SharedKeySigningProperties,
    ) -> None:
        if "Date" not in request.fields and "x-ms-date" not in request.fields:
            request.fields.set_field(
                Field(name="x-ms-date", values=[signing_properties["date"]])
            )
        version = signing_properties.get("version")
        if version is not None and "x-ms-version" not in request.fields:
            request.fields.set_field(Field(name="x-ms-version", values=[version]))

    async def _format_standard_fields(self, *, fields: FieldsInterface) -> str:
        lines = []
        for name in SIGNED_STANDARD_HEADERS:
            value = fields[name].as_string(delimiter=",") if name in fields else ""
            if name == "Content-Length" and value == "0":
                value = ""
            lines.append(f"{value}\n")
        return "".join(lines)

    async def _format_canonical_fields(self, *, fields: FieldsInterface) -> str:
        canonical_fields = sorted(
            (field.name.lower(), field.as_string(delimiter=","))
            for field in fields
            if field.name.lower().startswith(CANONICAL_HEADER_PREFIX)
        )
        return "".join(f"{key}:{value}\n" for key, value in canonical_fields)

    async def _format_canonical_resource(
        self, *, uri: URIInterface, account_name: str
    ) -> str:
        canonical_path = await self._format_canonical_path(path=uri.path)
        canonical_query = await self._format_canonical_query(uri=uri)
        return f"/{account_name}/{canonical_path}\n{canonical_query}"

    async def _format_canonical_path(self, *, path: str | None) -> str:
        if path is None:
            return ""
        return decode_url_component(path).removeprefix("/")

    async def _format_canonical_query(self, *, uri: URIInterface) -> str:
        grouped_params: dict[str, list[str]] = {}
        for key, value in uri.query_params():
            grouped_params.setdefault(key.lower(), []).append(value)
        return "".join(
            f"{key}:{','.join(sorted(values))}\n"
            for key, values in sorted(grouped_params.items())
        )


def compute_signature(
    *,
    method: str,
    url: str,
    headers: Mapping[str, str] | Iterable[tuple[str, str]] | None,
    account_name: str,
    account_key: str,
) -> str:
    """Compute the Shared Key signature for a request given as plain values.

    :param method: The HTTP method token, for example ``GET``.
    :param url: The absolute, already encoded request URL.
    :param headers: Header names and values. Repeated names are comma-joined.
    :param account_name: The storage account name.
    :param account_key: The base64 encoded account key.
    :raises InvalidRequestUrlException: If the URL isn't absolute or can't be
        split into a path and query.
    :raises InvalidCredentialException: If the account key is not base64.
    """
    request = StorageRequest.from_url(method=method, url=url, headers=headers)
    identity = StorageSharedKeyIdentity(
        account_name=account_name, account_key=account_key
    )
    return SharedKeySigner().compute_signature(request=request, identity=identity)
