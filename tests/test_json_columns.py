"""
Blog API — JSON Column Decoding Tests
=======================================

What:  The tolerant decoders used for comments, authors and featured_image.
Why:   Rows written by older versions (or by hand) must never break a read.
"""

import json

from app.services.json_columns import (
    decode_image_descriptor,
    normalize_authors,
    normalize_comment_list,
    parse_authors_input,
    public_image_descriptor,
)


class TestNormalizeCommentList:

    def test_none_is_empty(self):
        assert normalize_comment_list(None) == []

    def test_json_text_is_decoded(self):
        raw = json.dumps([{"id": "1", "text": "hi"}])
        assert normalize_comment_list(raw) == [{"id": "1", "text": "hi"}]

    def test_invalid_json_text_is_empty(self):
        assert normalize_comment_list("not json [") == []

    def test_list_passes_through(self):
        comments = [{"id": "a"}, {"id": "b"}]
        assert normalize_comment_list(comments) == comments

    def test_mapping_yields_its_values_in_order(self):
        raw = {"x": {"id": "1"}, "y": {"id": "2"}}
        assert normalize_comment_list(raw) == [{"id": "1"}, {"id": "2"}]

    def test_json_object_text_yields_values(self):
        raw = json.dumps({"k": {"id": "1"}})
        assert normalize_comment_list(raw) == [{"id": "1"}]

    def test_scalars_and_non_mapping_entries_are_dropped(self):
        assert normalize_comment_list(42) == []
        assert normalize_comment_list('"just a string"') == []
        assert normalize_comment_list([{"id": "1"}, "junk", 3, None]) == [{"id": "1"}]

    def test_bytes_are_decoded(self):
        assert normalize_comment_list(b'[{"id": "1"}]') == [{"id": "1"}]


class TestAuthors:

    def test_json_list_keeps_order(self):
        assert normalize_authors('["Zed", "Amy", "Bob"]') == ["Zed", "Amy", "Bob"]

    def test_plain_text_becomes_single_author(self):
        assert normalize_authors("Jane Doe") == ["Jane Doe"]

    def test_none_is_empty(self):
        assert normalize_authors(None) == []

    def test_parse_input_rejects_non_list(self):
        assert parse_authors_input('"Jane"') is None
        assert parse_authors_input("Jane") is None
        assert parse_authors_input('{"a": 1}') is None

    def test_parse_input_accepts_json_list(self):
        assert parse_authors_input('["A", "B"]') == ["A", "B"]

    def test_parse_input_deep_nesting_is_none(self):
        assert parse_authors_input("[" * 100000) is None


class TestImageDescriptor:

    def test_reduced_to_public_fields(self):
        raw = json.dumps({
            "public_id": "blogs/featured/featured-1",
            "format": "jpg",
            "secure_url": "https://res.cloudinary.com/x.jpg",
            "width": 1200,
        })
        assert public_image_descriptor(raw) == {
            "public_id": "blogs/featured/featured-1",
            "format": "jpg",
            "resource_type": "image",
        }

    def test_double_encoded_text_is_decoded(self):
        inner = json.dumps({"public_id": "p", "format": "png", "resource_type": "image"})
        assert decode_image_descriptor(json.dumps(inner))["public_id"] == "p"

    def test_undecodable_is_none(self):
        assert public_image_descriptor("garbage{") is None
        assert public_image_descriptor(None) is None
        assert public_image_descriptor("") is None

    def test_deeply_nested_text_is_none(self):
        assert decode_image_descriptor('{"a":' * 100000) is None
