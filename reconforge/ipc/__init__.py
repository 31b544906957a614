from .channel import Channel, ChannelClosed, MalformedMessage, decode_message, encode_message
from .envelope import (
    ErrorDetail,
    ErrorResponse,
    ReadySignal,
    SuccessResponse,
    WorkerRequest,
    generate_request_id,
)

__all__ = [
    "Channel",
    "ChannelClosed",
    "MalformedMessage",
    "decode_message",
    "encode_message",
    "ErrorDetail",
    "ErrorResponse",
    "ReadySignal",
    "SuccessResponse",
    "WorkerRequest",
    "generate_request_id",
]
