"""
Flat Array Indexing

This module maps logical multi-index coordinates onto the flattened,
row-major buffers returned by every variable accessor of the reader.

A variable of shape (d0, d1) stores element [i][j] at offset d1*i + j,
and a variable of shape (d0, d1, d2) stores element [i][j][k] at offset
d1*d2*i + d2*j + k: the last index varies fastest. Both cases are served
by the single stride computation in `row_major_strides`, so the 2-D and
3-D retrieval paths cannot drift apart.

See Also:
    - utils: VariableDescriptor.index, which delegates here
"""

import functools
from typing import Iterator, Sequence, Tuple

Shape = Tuple[int, ...]


def _as_shape(shape: Sequence[int]) -> Shape:
    shape = tuple(int(d) for d in shape)
    if len(shape) == 0:
        raise ValueError("Shape must have at least one dimension")
    if any(d < 0 for d in shape):
        raise ValueError(f"Dimension sizes must be non-negative, got {shape}")
    return shape


@functools.lru_cache(maxsize=128)
def _strides(shape: Shape) -> Shape:
    strides = [1] * len(shape)
    for axis in range(len(shape) - 2, -1, -1):
        strides[axis] = strides[axis + 1] * shape[axis + 1]
    return tuple(strides)


def row_major_strides(shape: Sequence[int]) -> Shape:
    """
    Compute the row-major stride of every axis of a shape.

    Args:
        shape: Ordered dimension sizes

    Returns:
        One stride per axis, the last one being 1

    Examples:
        >>> row_major_strides((3, 2, 4))
        (8, 4, 1)
    """
    return _strides(_as_shape(shape))


def shape_size(shape: Sequence[int]) -> int:
    """Number of elements of a flattened buffer with the given shape."""
    size = 1
    for d in _as_shape(shape):
        size *= d
    return size


def array_index(coords: Sequence[int], shape: Sequence[int]) -> int:
    """
    Linear offset of a logical coordinate in a row-major flattened buffer.

    Args:
        coords: One index per axis
        shape: Ordered dimension sizes of the buffer

    Returns:
        Offset into the flattened buffer

    Raises:
        IndexError: If the rank differs from the shape or a coordinate is
            out of range. Bounds always come from a shape already read
            from the file, so this is a programming error.
    """
    shape = _as_shape(shape)
    if len(coords) != len(shape):
        raise IndexError(f"Expected {len(shape)} coordinates for shape {shape}, got {len(coords)}")

    offset = 0
    for axis, (c, d, stride) in enumerate(zip(coords, shape, _strides(shape))):
        if not 0 <= c < d:
            raise IndexError(f"Coordinate {c} out of range [0, {d}) on axis {axis} of shape {shape}")
        offset += stride * c
    return offset


def array2d_index(i: int, j: int, dim1: int, dim2: int) -> int:
    """
    Offset of element [i][j] of a [dim1][dim2] array stored flat.

    Examples:
        >>> array2d_index(1, 2, 2, 3)
        5
    """
    return array_index((i, j), (dim1, dim2))


def array3d_index(i: int, j: int, k: int, dim1: int, dim2: int, dim3: int) -> int:
    """
    Offset of element [i][j][k] of a [dim1][dim2][dim3] array stored flat.

    Examples:
        >>> array3d_index(2, 1, 3, 3, 2, 4)
        23
    """
    return array_index((i, j, k), (dim1, dim2, dim3))


def iter_indices(shape: Sequence[int]) -> Iterator[Tuple[Shape, int]]:
    """
    Traverse a full array in storage order.

    Iterates the first axis outermost and the last axis innermost, each in
    ascending order, which visits offsets 0, 1, 2, ... exactly once.
    Consumers that print or serialize a flat buffer rely on this order.

    Args:
        shape: Ordered dimension sizes

    Yields:
        (coords, offset) pairs
    """
    shape = _as_shape(shape)
    strides = _strides(shape)
    rank = len(shape)

    if any(d == 0 for d in shape):
        return

    coords = [0] * rank
    while True:
        yield tuple(coords), sum(c * s for c, s in zip(coords, strides))

        # Advance like an odometer, last axis fastest
        axis = rank - 1
        while axis >= 0:
            coords[axis] += 1
            if coords[axis] < shape[axis]:
                break
            coords[axis] = 0
            axis -= 1
        if axis < 0:
            return
