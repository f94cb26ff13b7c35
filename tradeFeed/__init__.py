from .LineFramer import FramedLine, LineKind, StreamReadError, classify, frame, iter_lines
from .TradeDecoder import MalformedTradeError, decode_trade

__all__ = [
    "FramedLine",
    "LineKind",
    "MalformedTradeError",
    "StreamReadError",
    "classify",
    "decode_trade",
    "frame",
    "iter_lines",
]
