"""
_bitset.py
==========
Fixed-length, immutable bit vectors used as keys for clades, subsplits and
parent-child subsplit pairs (PCSPs).

Layout conventions
------------------
A *clade* over T taxa is a Bitset of length T; bit ``i`` is set when taxon
``i`` (position in the global namespace) belongs to the clade.

A *subsplit* is two disjoint clades concatenated into a Bitset of length 2T.
The order of the halves matters: the second half is the clade that is split
further by the subsplit's "sorted" children, and ``rotate_subsplit()`` swaps
the halves to address the other side.

A *PCSP* is a parent subsplit (oriented so its second half is the clade being
split) concatenated with a child subsplit, i.e. a Bitset of length 4T.

Canonical order
---------------
``Bitset.subsplit_of_pair(x, y)`` puts the clade holding the lowest taxon
index first.  Bit vectors of equal length compare lexicographically from
position 0, so this is simply "larger vector first".

Storage
-------
Each Bitset wraps a big-endian ``bitarray.frozenbitarray``, which is
hashable and supports concatenation and slicing directly:

    a + b          concatenation
    a.chunk(i)     a slice of len(a) // 2 bits

``value`` exposes the backing bits as an unsigned integer (position 0 is the
most significant bit).
"""

from functools import total_ordering
from typing import Iterable, Optional

from bitarray import frozenbitarray
from bitarray.util import ba2int, int2ba, zeros


@total_ordering
class Bitset:
    """
    An immutable, hashable bit vector of fixed length.

    Parameters
    ----------
    size : int
        Number of bits.
    value : int, default 0
        Unsigned integer whose binary expansion, padded to *size* digits,
        gives the bits from position 0 onward.
    """

    __slots__ = ("_bits",)

    def __init__(self, size: int, value: int = 0) -> None:
        if size < 0:
            raise ValueError(f"Bitset size must be non-negative, got {size}")
        if value < 0 or value >> size:
            raise ValueError(f"Value {value} does not fit in {size} bits")
        if size == 0:
            self._bits = frozenbitarray(endian="big")
        else:
            self._bits = frozenbitarray(int2ba(int(value), length=int(size), endian="big"))

    @classmethod
    def _wrap(cls, bits) -> "Bitset":
        obj = cls.__new__(cls)
        obj._bits = bits if isinstance(bits, frozenbitarray) else frozenbitarray(bits)
        return obj

    # ================================================================== #
    # Constructors                                                         #
    # ================================================================== #

    @classmethod
    def from_indices(cls, size: int, indices: Iterable[int]) -> "Bitset":
        """Return a Bitset of length *size* with the given positions set."""
        bits = zeros(size, endian="big")
        for i in indices:
            if not 0 <= i < size:
                raise ValueError(f"Index {i} out of range for Bitset of size {size}")
            bits[i] = 1
        return cls._wrap(bits)

    @classmethod
    def from_string(cls, bits: str) -> "Bitset":
        """
        Parse a string of '0'/'1' characters.  '|' separators are ignored so
        that the output of ``subsplit_to_string()`` round-trips.
        """
        bits = bits.replace("|", "")
        if any(c not in "01" for c in bits):
            raise ValueError(f"Bitset strings may only contain 0, 1 and '|': {bits!r}")
        return cls._wrap(frozenbitarray(bits, endian="big"))

    @classmethod
    def fake_subsplit(cls, taxon: int, taxon_count: int) -> "Bitset":
        """The degenerate leaf subsplit ``(0…0 | e_taxon)``."""
        return cls(taxon_count) + cls.from_indices(taxon_count, [taxon])

    @staticmethod
    def subsplit_of_pair(clade_a: "Bitset", clade_b: "Bitset") -> "Bitset":
        """
        Return the canonical subsplit for two disjoint clades.

        The clade containing the lowest taxon index comes first.

        Raises
        ------
        ValueError   if the clades differ in size or overlap.
        """
        if (clade_a & clade_b).any():
            raise ValueError(
                f"Clades {clade_a.to_string()} and {clade_b.to_string()} "
                "are not disjoint"
            )
        if clade_a._bits >= clade_b._bits:
            return clade_a + clade_b
        return clade_b + clade_a

    # ================================================================== #
    # Queries                                                              #
    # ================================================================== #

    @property
    def value(self) -> int:
        return ba2int(self._bits) if len(self._bits) else 0

    def __len__(self) -> int:
        return len(self._bits)

    def __getitem__(self, i: int) -> bool:
        if not 0 <= i < len(self._bits):
            raise IndexError(f"Bit {i} out of range for Bitset of size {len(self._bits)}")
        return bool(self._bits[i])

    def any(self) -> bool:
        return self._bits.any()

    def count(self) -> int:
        return self._bits.count(1)

    def indices(self) -> list:
        """Positions of the set bits, ascending."""
        return [i for i, bit in enumerate(self._bits) if bit]

    def singleton_option(self) -> Optional[int]:
        """Return the index of the only set bit, or None if count() != 1."""
        if self._bits.count(1) != 1:
            return None
        return self._bits.index(1)

    # ================================================================== #
    # Bitwise algebra                                                      #
    # ================================================================== #

    def _check_size(self, other: "Bitset") -> None:
        if len(self._bits) != len(other._bits):
            raise ValueError(
                f"Bitset size mismatch: {len(self._bits)} vs {len(other._bits)}"
            )

    def __invert__(self) -> "Bitset":
        return Bitset._wrap(~self._bits)

    def __and__(self, other: "Bitset") -> "Bitset":
        self._check_size(other)
        return Bitset._wrap(self._bits & other._bits)

    def __or__(self, other: "Bitset") -> "Bitset":
        self._check_size(other)
        return Bitset._wrap(self._bits | other._bits)

    def __xor__(self, other: "Bitset") -> "Bitset":
        self._check_size(other)
        return Bitset._wrap(self._bits ^ other._bits)

    def __add__(self, other: "Bitset") -> "Bitset":
        """Concatenation: ``self`` occupies the leading positions."""
        if not isinstance(other, Bitset):
            return NotImplemented
        return Bitset._wrap(self._bits + other._bits)

    # ================================================================== #
    # Subsplit structure                                                   #
    # ================================================================== #

    def chunk(self, i: int, chunk_count: int = 2) -> "Bitset":
        """
        Return chunk *i* of *chunk_count* equal-sized chunks.

        For a subsplit, ``chunk(0)`` and ``chunk(1)`` are its two clades; for a
        PCSP, ``chunk(i, 4)`` addresses the four clades.
        """
        size = len(self._bits)
        if chunk_count <= 0 or size % chunk_count:
            raise ValueError(
                f"Cannot split a Bitset of size {size} into {chunk_count} chunks"
            )
        if not 0 <= i < chunk_count:
            raise ValueError(f"Chunk {i} out of range for {chunk_count} chunks")
        width = size // chunk_count
        return Bitset._wrap(self._bits[i * width : (i + 1) * width])

    def rotate_subsplit(self) -> "Bitset":
        """Swap the two halves of a subsplit."""
        return self.chunk(1) + self.chunk(0)

    # ================================================================== #
    # Identity and ordering                                                #
    # ================================================================== #

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        return self._bits == other._bits

    def __lt__(self, other: "Bitset") -> bool:
        if not isinstance(other, Bitset):
            return NotImplemented
        if len(self._bits) != len(other._bits):
            return len(self._bits) < len(other._bits)
        return self._bits < other._bits

    def __hash__(self) -> int:
        return hash(self._bits)

    # ================================================================== #
    # Rendering and conversion                                             #
    # ================================================================== #

    def to_string(self) -> str:
        return self._bits.to01()

    def subsplit_to_string(self) -> str:
        """Render as two '|'-separated clades, e.g. ``'1100|0011'``."""
        return "|".join(self.chunk(i).to_string() for i in range(2))

    def pcsp_to_string(self) -> str:
        """Render a PCSP as ``'parent0|parent1||child0|child1'``."""
        c = [self.chunk(i, 4).to_string() for i in range(4)]
        return f"{c[0]}|{c[1]}||{c[2]}|{c[3]}"

    def __repr__(self) -> str:
        return f"Bitset('{self.to_string()}')"
