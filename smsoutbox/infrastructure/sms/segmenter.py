from __future__ import annotations

from typing import Callable

from smsoutbox.domain.ports.segmenter import SegmenterPort

# GSM 03.38 default alphabet (escape character excluded)
GSM_BASIC = frozenset(
    "@£$¥èéùìòÇ\nØø\rÅåΔ_ΦΓΛΩΠΨΣΘΞÆæßÉ !\"#¤%&'()*+,-./0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNOPQRSTUVWXYZÄÖÑÜ§¿abcdefghijklmnopqrstuvwxyzäöñüà"
)
# reachable through the escape character, so each costs two septets
GSM_EXTENSION = frozenset("^{}\\[~]|€\f")

GSM_SINGLE_LIMIT = 160
GSM_PART_LIMIT = 153  # 7 septets go to the concatenation header
UCS2_SINGLE_LIMIT = 70
UCS2_PART_LIMIT = 67


def _gsm_cost(ch: str) -> int:
    return 2 if ch in GSM_EXTENSION else 1


def _ucs2_cost(ch: str) -> int:
    # characters outside the BMP take a surrogate pair
    return 2 if ord(ch) > 0xFFFF else 1


def is_gsm_encodable(body: str) -> bool:
    return all(ch in GSM_BASIC or ch in GSM_EXTENSION for ch in body)


def _split(body: str, cost: Callable[[str], int], single: int, per_part: int) -> list[str]:
    if sum(cost(ch) for ch in body) <= single:
        return [body]

    parts: list[str] = []
    current: list[str] = []
    used = 0
    for ch in body:
        c = cost(ch)
        if used + c > per_part:
            parts.append("".join(current))
            current, used = [], 0
        current.append(ch)
        used += c
    if current:
        parts.append("".join(current))
    return parts


class GsmSegmenter(SegmenterPort):
    """
    Splits bodies the way a handset does: GSM 7-bit when every character is
    in the default alphabet, UCS-2 otherwise.
    """

    def divide_message(self, body: str) -> list[str]:
        if is_gsm_encodable(body):
            return _split(body, _gsm_cost, GSM_SINGLE_LIMIT, GSM_PART_LIMIT)
        return _split(body, _ucs2_cost, UCS2_SINGLE_LIMIT, UCS2_PART_LIMIT)
