from enum import Enum
from typing import Iterable

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from taskhub.utils.errors import ValidationError

_http_url = TypeAdapter(AnyHttpUrl)


def is_valid_url(value: str | None) -> bool:
    """True for absolute http(s) URLs."""
    if not value:
        return False
    try:
        _http_url.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def check_enum(value: str | None, enum_cls: type[Enum], label: str) -> None:
    if value is None:
        return
    allowed = [member.value for member in enum_cls]
    if value not in allowed:
        raise ValidationError(f"Invalid {label}. Must be one of: {', '.join(allowed)}")


def check_links(urls: Iterable[str | None]) -> None:
    """Abort on the first missing or malformed URL."""
    for url in urls:
        if not url:
            raise ValidationError("Link URL is required for all links.")
        if not is_valid_url(url):
            raise ValidationError(f"Invalid URL: {url}")
