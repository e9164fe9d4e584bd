import datetime


def get_utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def get_utc_iso_now() -> str:
    return get_utc_now().isoformat()


def get_epoch_millis() -> int:
    return int(get_utc_now().timestamp() * 1000)
