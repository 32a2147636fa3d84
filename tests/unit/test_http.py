"""
Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
SPDX-License-Identifier: Apache-2.0
"""

import pytest

from storage_sdk_signers import URI, Field, Fields, StorageRequest
from storage_sdk_signers._http import FieldPosition, decode_url_component
from storage_sdk_signers.exceptions import InvalidRequestUrlException


class TestField:
    def test_as_string_single_value(self):
        field = Field(name="x-ms-meta-a", values=["a, b"])
        assert field.as_string(delimiter=",") == "a, b"

    def test_as_string_joins_values(self):
        field = Field(name="x-ms-meta-a", values=["1", "2", "3"])
        assert field.as_string() == "1, 2, 3"
        assert field.as_string(delimiter=",") == "1,2,3"

    def test_as_string_without_values(self):
        assert Field(name="Range").as_string() == ""

    def test_add_set_and_remove(self):
        field = Field(name="x-ms-meta-a", values=["1"])
        field.add("2")
        field.add("1")
        assert field.values == ["1", "2", "1"]
        field.remove("1")
        assert field.values == ["2"]
        field.set(["3"])
        assert field.as_tuples() == [("x-ms-meta-a", "3")]

    def test_equality(self):
        assert Field(name="Date", values=["a"]) == Field(name="Date", values=["a"])
        assert Field(name="Date", values=["a"]) != Field(
            name="Date", values=["a"], kind=FieldPosition.TRAILER
        )
        assert Field(name="Date", values=["a"]) != "Date: a"


class TestFields:
    def test_lookup_is_case_insensitive(self):
        fields = Fields([Field(name="Content-MD5", values=["abc=="])])
        assert "content-md5" in fields
        assert "CONTENT-MD5" in fields
        assert fields["content-md5"].name == "Content-MD5"
        assert fields.get("Content-Type") is None

    def test_repeated_initial_names_rejected(self):
        with pytest.raises(ValueError, match="x-ms-date"):
            Fields([Field(name="x-ms-date"), Field(name="X-MS-Date")])

    def test_set_field_replaces_existing(self):
        fields = Fields([Field(name="x-ms-version", values=["2021-08-06"])])
        fields.set_field(Field(name="X-Ms-Version", values=["2023-11-03"]))
        assert len(fields) == 1
        assert fields["x-ms-version"].as_string() == "2023-11-03"

    def test_setitem_name_mismatch(self):
        fields = Fields()
        with pytest.raises(ValueError):
            fields["Date"] = Field(name="x-ms-date")

    def test_remove_field(self):
        fields = Fields([Field(name="Range", values=["bytes=0-1"])])
        fields.remove_field("range")
        assert "Range" not in fields
        with pytest.raises(KeyError):
            fields.get_field("Range")

    def test_extend_appends_values(self):
        fields = Fields([Field(name="x-ms-meta-a", values=["1"])])
        fields.extend(
            Fields(
                [
                    Field(name="X-MS-META-A", values=["2"]),
                    Field(name="Date", values=["d"]),
                ]
            )
        )
        assert fields["x-ms-meta-a"].values == ["1", "2"]
        assert fields["date"].values == ["d"]

    def test_get_by_type(self):
        header = Field(name="Date", values=["d"])
        trailer = Field(name="x-ms-checksum", kind=FieldPosition.TRAILER)
        fields = Fields([header, trailer])
        assert fields.get_by_type(FieldPosition.HEADER) == [header]
        assert fields.get_by_type(FieldPosition.TRAILER) == [trailer]

    def test_equality_ignores_order(self):
        a = Field(name="a", values=["1"])
        b = Field(name="b", values=["2"])
        assert Fields([a, b]) == Fields([b, a])
        assert Fields([a]) != Fields([a, b])
        assert Fields([a]) != {"a": a}


class TestURI:
    def test_from_url(self):
        uri = URI.from_url(
            "https://user:pw@acct.blob.core.example.com:8443/c/b%20c?comp=list#frag"
        )
        assert uri.scheme == "https"
        assert uri.host == "acct.blob.core.example.com"
        assert uri.port == 8443
        assert uri.path == "/c/b%20c"
        assert uri.query == "comp=list"
        assert uri.fragment == "frag"
        assert uri.username == "user"
        assert uri.password == "pw"

    def test_from_url_without_path_or_query(self):
        uri = URI.from_url("https://acct.blob.core.example.com")
        assert uri.path is None
        assert uri.query is None
        assert uri.query_params() == []

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "acct.blob.core.example.com/c",
            "/c/b?comp=list",
            "https:///c/b",
            "https://[::1/c",
            "https://acct.blob.core.example.com:port/c",
        ],
    )
    def test_from_url_invalid(self, url: str):
        with pytest.raises(InvalidRequestUrlException):
            URI.from_url(url)

    def test_invalid_url_is_a_value_error(self):
        with pytest.raises(ValueError):
            URI.from_url("not a url")

    def test_query_params(self):
        uri = URI(
            host="acct.blob.core.example.com",
            query="comp=list&prefix=a%2Fb+c&&marker&include=",
        )
        assert uri.query_params() == [
            ("comp", "list"),
            ("prefix", "a/b+c"),
            ("marker", ""),
            ("include", ""),
        ]

    @pytest.mark.parametrize("query", ["sig=%FF", "%FE=1", "a=%C3", "a=b%80c"])
    def test_query_params_rejects_non_utf8_escapes(self, query: str):
        uri = URI(host="acct.blob.core.example.com", query=query)
        with pytest.raises(InvalidRequestUrlException):
            uri.query_params()

    def test_build_round_trips_url(self):
        url = "https://acct.blob.core.example.com:8443/c/b%20c?comp=list"
        assert URI.from_url(url).build() == url

    def test_netloc(self):
        assert URI(host="::1", port=10000).netloc == "[::1]:10000"
        assert URI(host="h", username="u").netloc == "u@h"
        assert URI(host="h", username="u", password="p").netloc == "u:p@h"
        assert URI(host="h", password="p").netloc == "h"

    def test_to_dict(self):
        uri = URI(host="h", path="/c")
        assert URI(**uri.to_dict()) == uri


class TestStorageRequest:
    def test_from_url_with_mapping(self):
        request = StorageRequest.from_url(
            method="HEAD",
            url="https://acct.blob.core.example.com/c/b",
            headers={"x-ms-date": "d", "Range": "bytes=0-1"},
        )
        assert request.method == "HEAD"
        assert request.destination.path == "/c/b"
        assert request.fields["X-MS-DATE"].as_string() == "d"
        assert request.fields["range"].as_string() == "bytes=0-1"
        assert request.body is None

    def test_from_url_merges_repeated_headers(self):
        request = StorageRequest.from_url(
            method="GET",
            url="https://acct.blob.core.example.com/c",
            headers=[("x-ms-meta-a", "1"), ("X-MS-META-A", "2")],
        )
        assert len(request.fields) == 1
        assert request.fields["x-ms-meta-a"].as_string(delimiter=",") == "1,2"

    def test_from_url_without_headers(self):
        request = StorageRequest.from_url(
            method="GET", url="https://acct.blob.core.example.com/c"
        )
        assert len(request.fields) == 0

    def test_from_url_invalid(self):
        with pytest.raises(InvalidRequestUrlException):
            StorageRequest.from_url(method="GET", url="/c/b")


class TestDecodeUrlComponent:
    @pytest.mark.parametrize(
        "component, expected",
        [
            ("a%20b", "a b"),
            ("caf%C3%A9", "café"),
            ("a+b", "a+b"),
            ("100%", "100%"),
            ("", ""),
        ],
    )
    def test_decodes_utf8(self, component: str, expected: str):
        assert decode_url_component(component) == expected

    @pytest.mark.parametrize("component", ["%FF", "%FE", "c/%C3", "%E2%82"])
    def test_rejects_non_utf8(self, component: str):
        with pytest.raises(InvalidRequestUrlException, match="not percent-encoded"):
            decode_url_component(component)
