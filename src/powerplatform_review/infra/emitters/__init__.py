from __future__ import annotations

from typing import Callable

from ...core.domain.exceptions import EmitError, EmitErrorCode
from ...core.domain.models import ReviewResult
from . import html_emitter, json_emitter, sarif_emitter
from .json_emitter import decode_result

EMITTERS: dict[str, Callable[[ReviewResult], bytes]] = {
    "json": json_emitter.encode,
    "sarif": sarif_emitter.encode,
    "html": html_emitter.encode,
}

EXTENSIONS = {"json": "json", "sarif": "sarif", "html": "html"}


def emit(result: ReviewResult, fmt: str) -> bytes:
    """Serialize a result in one of the supported formats.

    Raises:
        EmitError: UNSUPPORTED_FORMAT for an unknown format name,
            WRITE_FAILURE when the encoder itself fails
    """
    encoder = EMITTERS.get(fmt.lower())
    if encoder is None:
        raise EmitError(
            EmitErrorCode.UNSUPPORTED_FORMAT,
            f"Unsupported report format '{fmt}' (expected one of: {', '.join(EMITTERS)})",
            fmt=fmt,
        )
    try:
        return encoder(result)
    except Exception as e:
        raise EmitError(
            EmitErrorCode.WRITE_FAILURE,
            f"Cannot encode {fmt} report: {type(e).__name__}: {e}",
            fmt=fmt,
        ) from e


__all__ = ["EMITTERS", "EXTENSIONS", "decode_result", "emit"]
