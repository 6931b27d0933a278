from dataclasses import dataclass


@dataclass(frozen=True)
class Signature:
    """Leading magic bytes of a format, plus an optional marker further in."""

    prefix: bytes
    marker_offset: int = 0
    marker: bytes = b""

    def matches(self, data: bytes) -> bool:
        if not data.startswith(self.prefix):
            return False
        if self.marker:
            end = self.marker_offset + len(self.marker)
            return data[self.marker_offset:end] == self.marker
        return True


_JPEG = Signature(prefix=b"\xff\xd8\xff")

SIGNATURES: dict[str, Signature] = {
    "image/jpeg": _JPEG,
    "image/jpg": _JPEG,
    "image/png": Signature(prefix=b"\x89PNG"),
    # RIFF container; WAV and AVI share it, so require the WEBP fourcc too.
    "image/webp": Signature(prefix=b"RIFF", marker_offset=8, marker=b"WEBP"),
    "application/pdf": Signature(prefix=b"%PDF"),
}


def signature_for(content_type: str) -> Signature | None:
    return SIGNATURES.get(content_type.strip().lower())


def leading_bytes(data: bytes, count: int = 8) -> str:
    """Hex rendering of the first bytes, for logs."""
    return data[:count].hex(" ")
