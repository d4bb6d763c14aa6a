"""
Replay protection bitmaps.

Every signed intent consumes one bit of a 256-bit word stored by the account
contract. Bits can be consumed in any order, so many intents may be
outstanding at once. Slots are ordered by (bitmap index, bit) and a consumed
bit is never unset.

The functions here work on a ``BitmapState`` snapshot of on-chain storage.
They never mutate it and never cache it; the account facade reads a fresh
snapshot for every query. Two signers working from the same stale snapshot
can pick the same slot, so callers must re-check ``bit_used`` before
broadcasting.
"""
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from eth_abi.packed import encode_packed
from eth_utils import keccak

from .exceptions import InvalidArguments, UnsupportedNumericType
from .models import BitSlot
from .numeric import to_uint

BITS_PER_WORD = 256
FULL_WORD = 2 ** BITS_PER_WORD - 1
BITMAP_SLOT_PREFIX = "bmp"


def normalize_slot(bitmap_index: Any, bit: Any) -> Tuple[int, int]:
    """
    Normalize an integer-like (bitmap index, bit) pair.

    Accepts the same representations as the message encoder, so a slot that
    was signed as ``("0", "1")`` can be queried as ``("0", "1")``.

    Raises:
        InvalidArguments: If the index is not a uint256 or the bit is not in [0, 255]
    """
    try:
        index = to_uint(bitmap_index)
    except UnsupportedNumericType as e:
        raise InvalidArguments(f"Invalid bitmap index: {bitmap_index!r}") from e
    try:
        bit = to_uint(bit)
    except UnsupportedNumericType as e:
        raise InvalidArguments(f"Invalid bit: {bit!r}") from e
    if bit >= BITS_PER_WORD:
        raise InvalidArguments(f"Bit must be in [0, {BITS_PER_WORD - 1}], got {bit}")
    return index, bit


class BitmapState:
    """
    Immutable snapshot of an account's replay bitmaps.

    Maps bitmap index to its 256-bit word; indexes not present are all zero.
    """

    def __init__(self, words: Optional[Mapping[int, int]] = None):
        checked: Dict[int, int] = {}
        for index, word in (words or {}).items():
            if index < 0 or not 0 <= word <= FULL_WORD:
                raise InvalidArguments(f"Invalid bitmap word at index {index}")
            checked[index] = word
        self._words = MappingProxyType(checked)

    @property
    def words(self) -> Mapping[int, int]:
        return self._words

    def word(self, bitmap_index: int) -> int:
        return self._words.get(bitmap_index, 0)

    def with_word(self, bitmap_index: int, word: int) -> "BitmapState":
        """Snapshot with one word replaced, e.g. after reading it from chain."""
        words = dict(self._words)
        words[bitmap_index] = word
        return BitmapState(words)

    def with_bit_used(self, bitmap_index: int, bit: int) -> "BitmapState":
        """Snapshot with one more slot observed as consumed."""
        bitmap_index, bit = normalize_slot(bitmap_index, bit)
        return self.with_word(bitmap_index, self.word(bitmap_index) | (1 << bit))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BitmapState):
            return NotImplemented
        return self._nonzero() == other._nonzero()

    def _nonzero(self) -> Dict[int, int]:
        return {k: v for k, v in self._words.items() if v}

    def __repr__(self) -> str:
        return f"BitmapState({dict(self._words)!r})"


def is_used(bitmap_index: int, bit: int, state: BitmapState) -> bool:
    """Whether a slot is marked consumed in the snapshot."""
    bitmap_index, bit = normalize_slot(bitmap_index, bit)
    return bool((state.word(bitmap_index) >> bit) & 1)


def lowest_unset_bit(word: int) -> Optional[int]:
    """Lowest zero bit of a 256-bit word, or None if the word is full."""
    if word >= FULL_WORD:
        return None
    inverted = ~word & FULL_WORD
    return (inverted & -inverted).bit_length() - 1


def next_bit(state: BitmapState, start_index: int = 0) -> BitSlot:
    """
    Next free slot, scanning forward from ``start_index``.

    Returns the lowest (bitmap index, bit) not marked in the snapshot. It is
    a read-only projection: nothing is reserved.
    """
    index = start_index
    while True:
        bit = lowest_unset_bit(state.word(index))
        if bit is not None:
            return BitSlot(bitmap_index=index, bit=bit)
        index += 1


def used_slots(state: BitmapState) -> Iterator[BitSlot]:
    """Iterate all consumed slots in order."""
    for index in sorted(state.words):
        word = state.word(index)
        for bit in range(BITS_PER_WORD):
            if (word >> bit) & 1:
                yield BitSlot(bitmap_index=index, bit=bit)


def bitmap_storage_slot(bitmap_index: int) -> bytes:
    """Account storage slot of a bitmap word: ``keccak256(abi.encodePacked("bmp", index))``."""
    bitmap_index, _ = normalize_slot(bitmap_index, 0)
    return keccak(encode_packed(["string", "uint256"], [BITMAP_SLOT_PREFIX, bitmap_index]))
