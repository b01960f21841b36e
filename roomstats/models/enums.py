from __future__ import annotations

from enum import Enum


class NodeType(str, Enum):
    """Roles a media node can play inside a deployment."""

    SERVER = "SERVER"
    CONTROLLER = "CONTROLLER"
    MEDIA = "MEDIA"
    TURN = "TURN"
    SWEEPER = "SWEEPER"
    DIRECTOR = "DIRECTOR"
    HOSTED_AGENT = "HOSTED_AGENT"


class TrackKind(str, Enum):
    """Media kinds a participant can publish."""

    AUDIO = "audio"
    VIDEO = "video"
    DATA = "data"


class PublishState(str, Enum):
    """Values of the ``state`` label on the publish counter."""

    ATTEMPT = "attempt"
    SUCCESS = "success"


class SubscribeState(str, Enum):
    """Values of the ``state`` label on the subscribe counter."""

    ATTEMPT = "attempt"
    SUCCESS = "success"
    FAILURE = "failure"


class ErrorLabelMode(str, Enum):
    """How subscribe failures are turned into ``error`` label values."""

    MESSAGE = "message"
    TYPE = "type"
