"""Fixed-size square matrices stored row-major, emitted column-major."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np


class Matrix:
    """An ``n x n`` float64 matrix with exact identity and equality tests."""

    size: int = 0

    def __init__(self, size: int, rows: Sequence[Sequence[float]] | np.ndarray | None = None):
        self.size = size
        if rows is None:
            self.data = np.eye(size, dtype=np.float64)
        else:
            data = np.array(rows, dtype=np.float64)
            if data.shape != (size, size):
                raise ValueError(f"Expected a {size}x{size} matrix, got shape {data.shape}")
            self.data = data

    @property
    def rows(self) -> int:
        return self.size

    @property
    def cols(self) -> int:
        return self.size

    def is_identity(self) -> bool:
        # Exact comparison: a 1e-4 perturbation is not identity.
        return bool(np.array_equal(self.data, np.eye(self.size)))

    def to_column_major(self) -> list[float]:
        return self.data.T.flatten().tolist()

    def to_row_major(self) -> list[float]:
        return self.data.flatten().tolist()

    @classmethod
    def from_column_major(cls, values: Iterable[float], size: int = 4) -> Matrix:
        flat = np.array(list(values), dtype=np.float64)
        if flat.size != size * size:
            raise ValueError(f"Expected {size * size} values, got {flat.size}")
        return cls._make(size, flat.reshape(size, size).T)

    @classmethod
    def from_row_major(cls, values: Iterable[float], size: int = 4) -> Matrix:
        flat = np.array(list(values), dtype=np.float64)
        if flat.size != size * size:
            raise ValueError(f"Expected {size * size} values, got {flat.size}")
        return cls._make(size, flat.reshape(size, size))

    @classmethod
    def _make(cls, size: int, rows: np.ndarray) -> Matrix:
        if cls is Matrix:
            return Matrix(size, rows)
        return cls(rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.size == other.size and bool(np.array_equal(self.data, other.data))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.data.tolist()!r})"


class Matrix4x4(Matrix):
    def __init__(self, rows: Sequence[Sequence[float]] | np.ndarray | None = None):
        super().__init__(4, rows)

    @classmethod
    def from_column_major(cls, values: Iterable[float], size: int = 4) -> Matrix4x4:
        return super().from_column_major(values, 4)  # type: ignore[return-value]

    @classmethod
    def from_row_major(cls, values: Iterable[float], size: int = 4) -> Matrix4x4:
        return super().from_row_major(values, 4)  # type: ignore[return-value]

    @classmethod
    def from_translation(cls, x: float, y: float, z: float) -> Matrix4x4:
        m = cls()
        m.data[0, 3] = x
        m.data[1, 3] = y
        m.data[2, 3] = z
        return m
