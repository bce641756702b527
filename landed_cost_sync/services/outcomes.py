"""
Sync outcomes — what a job handler did with a unit.
Version: 1.0.0
"""
from enum import Enum


class SyncOutcome(str, Enum):
    DEFERRED = "deferred"          # syncing off, unit parked in the pending bucket
    SKIPPED = "skipped"            # nothing to do (unsupported country, missing item, bad data)
    ENQUEUED = "enqueued"          # sync action fanned out into create units
    PENDING = "pending"            # service accepted, classification id stored
    CLASSIFIED = "classified"      # HS code stored
    UNAVAILABLE = "unavailable"    # service cannot classify, resolution bucket
    FAILED = "failed"              # error bucket, retried by the next resync
    HALTED = "halted"              # auth error, syncing stopped
