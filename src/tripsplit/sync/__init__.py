"""Trip sharing: share code codec and merge engine."""

from tripsplit.sync.codec import (
    INVALID_TOKEN_MESSAGE,
    CodecError,
    DecodeError,
    EncodeError,
    TripPayload,
    adopt_profiles,
    decode_token,
    encode_trip,
    export_trip,
    import_trip,
)
from tripsplit.sync.merge import merge_trip

__all__ = [
    "INVALID_TOKEN_MESSAGE",
    "CodecError",
    "DecodeError",
    "EncodeError",
    "TripPayload",
    "adopt_profiles",
    "decode_token",
    "encode_trip",
    "export_trip",
    "import_trip",
    "merge_trip",
]
