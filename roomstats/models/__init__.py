from .enums import ErrorLabelMode, NodeType, PublishState, SubscribeState, TrackKind

__all__ = [
    "ErrorLabelMode",
    "NodeType",
    "PublishState",
    "SubscribeState",
    "TrackKind",
]
