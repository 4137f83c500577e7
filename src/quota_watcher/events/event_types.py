"""Domain event names emitted by the quota engine."""

from enum import Enum


class EventType(Enum):
    FETCH_START = "quota:fetch:start"
    FETCH_SUCCESS = "quota:fetch:success"
    FETCH_ERROR = "quota:fetch:error"
    RETRY = "quota:retry"
    DETECT_START = "port:detect:start"
    DETECT_SUCCESS = "port:detect:success"
    DETECT_FAILURE = "port:detect:error"
    RECOVERY_START = "recovery:start"
    RECOVERY_SUCCESS = "recovery:success"
    RECOVERY_FAILURE = "recovery:failure"
