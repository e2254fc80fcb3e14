from datetime import datetime, timezone


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)
