# tests/splits/test_codec.py
import pytest

from bucket_routing.errors import ProtocolViolation, UnsupportedSplitType
from bucket_routing.splits.codec import SPLIT_CODEC_VERSION, decode_split, encode_split
from bucket_routing.splits.types import FileSplit, GroupedSplit


def test_file_split_without_bucket_survives_encoding():
    split = FileSplit(path="/wh/t/000003_0", start=64, length=1024, hosts=("h1", "h2"))
    decoded = decode_split(encode_split(split))
    assert decoded == split
    assert decoded.bucket_id is None


def test_nested_group_survives_encoding():
    inner = GroupedSplit(members=(
        FileSplit("/t/a", 0, 10, ("h1",), bucket_id=3),
        FileSplit("/t/b", 0, 20, ("h2",), bucket_id=3),
    ))
    outer = GroupedSplit(members=(inner, GroupedSplit(members=(FileSplit("/t/c", 5, 5, (), 3),))))

    decoded = decode_split(encode_split(outer))
    assert decoded == outer
    assert decoded.is_nested
    assert [s.path for s in decoded.file_splits()] == ["/t/a", "/t/b", "/t/c"]


def test_payload_starts_with_version():
    payload = encode_split(FileSplit("/t/a", 0, 1, (), 0))
    assert payload[0] == SPLIT_CODEC_VERSION


def test_truncated_payload_is_protocol_violation():
    payload = encode_split(FileSplit("/t/a", 0, 1, ("h",), 0))
    with pytest.raises(ProtocolViolation):
        decode_split(payload[:-3])


def test_trailing_bytes_are_protocol_violation():
    payload = encode_split(FileSplit("/t/a", 0, 1, ("h",), 0))
    with pytest.raises(ProtocolViolation):
        decode_split(payload + b"\x00")


def test_unknown_version_is_protocol_violation():
    with pytest.raises(ProtocolViolation):
        decode_split(bytes([99, 0x01]))


def test_unknown_tag_is_unsupported_split_type():
    with pytest.raises(UnsupportedSplitType):
        decode_split(bytes([SPLIT_CODEC_VERSION, 0x7F]))


def test_encoding_foreign_object_is_unsupported():
    with pytest.raises(UnsupportedSplitType):
        encode_split("not a split")
