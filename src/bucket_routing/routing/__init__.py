from .encoding import (
    decode_bucket_identity,
    decode_routing_descriptor,
    encode_bucket_identity,
    encode_routing_descriptor,
)
from .redistribute import reachable_primary_buckets, redistribute_buckets
from .table import RoutingTable, RoutingTableBuilder

__all__ = [
    "RoutingTable",
    "RoutingTableBuilder",
    "redistribute_buckets",
    "reachable_primary_buckets",
    "encode_routing_descriptor",
    "decode_routing_descriptor",
    "encode_bucket_identity",
    "decode_bucket_identity",
]
