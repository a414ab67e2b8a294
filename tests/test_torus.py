from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np
import pytest

from quantized_interactions.conway import Conway, pattern_initializer
from quantized_interactions.errors import DimensionError, TopologyError
from quantized_interactions.lattice import index_to_coords
from quantized_interactions.space import State
from quantized_interactions.tiling import Tiling, expected_degree
from quantized_interactions.torus import Torus


@dataclass(frozen=True)
class Static(State):
    value: int = 0

    @classmethod
    def update(cls, region, location, generation) -> "Static":
        return region.state(location, generation)

    def to_char(self) -> str:
        return str(self.value % 10)


def _coords_of_neighbors(torus: Torus, coords):
    return {torus.coordinates_of(n) for n in torus.get(coords).neighbors()}


def _static(coords) -> Static:
    return Static(sum(coords))


def test_build_creates_one_cell_per_coordinate_at_its_index() -> None:
    dims = (3, 4, 2)
    torus = Torus.build(Tiling.ORTHOGONAL, dims, 0, lambda c: Static(100 * c[0] + 10 * c[1] + c[2]))
    assert len(torus) == torus.N == 24
    assert torus.dimensionality == 3
    for i, cell in enumerate(torus.cells):
        r, c, d = index_to_coords(i, dims)
        assert cell.state(0) == Static(100 * r + 10 * c + d)
        assert torus.index_of(cell) == i
        assert torus.coordinates_of(cell) == (r, c, d)
    assert torus.get((1, 2, 1)) is torus.cell_at(1 + 2 * 3 + 1 * 12)
    assert torus.get((-2, 6, 3)) is torus.get((1, 2, 1))


def test_initializer_called_once_per_coordinate_in_row_major_order() -> None:
    seen = []

    def init(coords):
        seen.append(coords)
        return Static()

    Torus.build("orthogonal", (2, 3), 0, init)
    assert seen == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (1, 2)]


@pytest.mark.parametrize("dims", [(5,), (3, 3), (4, 5), (3, 4, 5), (3, 3, 3, 3)])
def test_orthogonal_wiring_gives_two_n_neighbors(dims) -> None:
    torus = Torus.build(Tiling.ORTHOGONAL, dims, 0, _static)
    n = len(dims)
    for cell in torus.cells:
        assert len(cell.neighbors()) == 2 * n == expected_degree(Tiling.ORTHOGONAL, n)


def test_orthogonal_neighbors_wrap_around() -> None:
    torus = Torus.build(Tiling.ORTHOGONAL, (4, 5), 0, _static)
    assert _coords_of_neighbors(torus, (0, 0)) == {(1, 0), (3, 0), (0, 1), (0, 4)}


@pytest.mark.parametrize("dims", [(3, 3), (4, 5), (3, 4, 5)])
def test_orthogonal_diagonal_adds_hypercube_corners(dims) -> None:
    torus = Torus.build(Tiling.ORTHOGONAL_DIAGONAL, dims, 0, _static)
    n = len(dims)
    for cell in torus.cells:
        assert len(cell.neighbors()) == 2 * n + 2 ** n


def test_orthogonal_diagonal_3d_neighbor_set() -> None:
    torus = Torus.build(Tiling.ORTHOGONAL_DIAGONAL, (4, 4, 4), 0, _static)
    got = _coords_of_neighbors(torus, (0, 0, 0))
    orth = {(1, 0, 0), (3, 0, 0), (0, 1, 0), (0, 3, 0), (0, 0, 1), (0, 0, 3)}
    corners = {(a, b, c) for a in (1, 3) for b in (1, 3) for c in (1, 3)}
    assert got == orth | corners


def test_moore_wiring_is_the_wrapped_three_by_three_block() -> None:
    torus = Torus.build(Tiling.MOORE, (5, 6), 0, _static)
    assert _coords_of_neighbors(torus, (0, 0)) == {
        (4, 5), (4, 0), (4, 1),
        (0, 5), (0, 1),
        (1, 5), (1, 0), (1, 1),
    }
    for cell in torus.cells:
        assert len(cell.neighbors()) == 8


def test_moore_on_tiny_extents_collapses_duplicates() -> None:
    torus = Torus.build(Tiling.MOORE, (2, 2), 0, _static)
    assert _coords_of_neighbors(torus, (0, 0)) == {(0, 1), (1, 0), (1, 1)}


def test_hexagonal_wiring_alternates_by_row_parity() -> None:
    torus = Torus.build(Tiling.HEXAGONAL, (4, 6), 0, _static)
    assert _coords_of_neighbors(torus, (0, 0)) == {(0, 1), (0, 5), (1, 0), (1, 1), (3, 0), (3, 1)}
    assert _coords_of_neighbors(torus, (1, 0)) == {(1, 1), (1, 5), (2, 5), (2, 0), (0, 0), (0, 5)}
    for cell in torus.cells:
        assert len(cell.neighbors()) == 6


@pytest.mark.parametrize("dims", [(3, 4), (4, 5), (4,), (4, 4, 4)])
def test_hexagonal_precondition_fails_before_creating_cells(dims) -> None:
    calls = []

    def init(coords):
        calls.append(coords)
        return Static()

    with pytest.raises(DimensionError):
        Torus.build(Tiling.HEXAGONAL, dims, 0, init)
    assert calls == []


def test_moore_requires_two_dimensions() -> None:
    with pytest.raises(DimensionError):
        Torus.build("touching_squares", (3, 3, 3), 0, _static)


@pytest.mark.parametrize("dims", [(0, 3), (), (3, -1)])
def test_zero_or_missing_dimensions(dims) -> None:
    with pytest.raises(DimensionError):
        Torus.build(Tiling.ORTHOGONAL, dims, 0, _static)


def test_joined_cells_are_mutual_neighbors() -> None:
    for tiling, dims in [(Tiling.ORTHOGONAL, (3, 4, 2)), (Tiling.HEXAGONAL, (4, 4)),
                         (Tiling.MOORE, (3, 5)), (Tiling.ORTHOGONAL_DIAGONAL, (2, 3))]:
        torus = Torus.build(tiling, dims, 0, _static)
        for cell in torus.cells:
            for other in cell.neighbors():
                assert cell in other.neighbors()
                assert other is not cell


def test_tiling_aliases() -> None:
    assert Tiling.parse("Touching-Squares") is Tiling.MOORE
    assert Tiling.parse("hex") is Tiling.HEXAGONAL
    assert Tiling.parse("orth_diag") is Tiling.ORTHOGONAL_DIAGONAL
    assert Tiling.parse(Tiling.ORTHOGONAL) is Tiling.ORTHOGONAL
    with pytest.raises(TopologyError, match="Unknown tiling"):
        Tiling.parse("triangles")


def test_reduce_counts_every_location() -> None:
    for dims in [(5,), (3, 4), (2, 3, 4)]:
        torus = Torus.build(Tiling.ORTHOGONAL, dims, 0, _static)
        assert torus.reduce(0, lambda region, loc, acc: acc + 1) == int(np.prod(dims))
    torus = Torus.build(Tiling.ORTHOGONAL, (3, 4), 0, _static)
    total = torus.reduce(0, lambda region, loc, acc: acc + region.state(loc, 0).value)
    assert total == sum(r + c for r in range(3) for c in range(4))
    assert torus.regions() == (torus,)


def test_update_all_advances_every_cell() -> None:
    torus = Torus.build(Tiling.ORTHOGONAL, (3, 3), 0, _static)
    torus.update_all(0)
    assert all(cell.state(1) == cell.state(0) for cell in torus.cells)
    assert all(cell.generations() == [0, 1] for cell in torus.cells)


def test_update_all_aborts_on_first_failure() -> None:
    @dataclass(frozen=True)
    class FailsAtTwo(State):
        value: int = 0

        @classmethod
        def update(cls, region, location, generation):
            this = region.state(location, generation)
            if this.value == 2:
                raise ArithmeticError("cell two")
            return this

    torus = Torus.build(Tiling.ORTHOGONAL, (5,), 0, lambda c: FailsAtTwo(c[0]))
    with pytest.raises(ArithmeticError, match="cell two"):
        torus.update_all(0)
    assert [cell.has_state(1) for cell in torus.cells] == [True, True, False, False, False]


def test_threaded_update_all_cancels_pending_updates_on_failure() -> None:
    @dataclass(frozen=True)
    class SlowUnlessZero(State):
        value: int = 0

        @classmethod
        def update(cls, region, location, generation):
            this = region.state(location, generation)
            if this.value == 0:
                raise ArithmeticError("cell zero")
            time.sleep(0.02)
            return this

    torus = Torus.build(Tiling.ORTHOGONAL, (50,), 0, lambda c: SlowUnlessZero(c[0]))
    with pytest.raises(ArithmeticError, match="cell zero"):
        torus.update_all(0, workers=2)
    committed = sum(cell.has_state(1) for cell in torus.cells)
    assert not torus.cells[0].has_state(1)
    # only the updates already running when cell zero failed get to finish
    assert committed <= 8


def test_threaded_sweep_matches_sequential_sweep() -> None:
    glider = [(0, 1), (1, 2), (2, 0), (2, 1), (2, 2)]
    a = Torus.build(Tiling.MOORE, (8, 8), 0, pattern_initializer(glider))
    b = Torus.build(Tiling.MOORE, (8, 8), 0, pattern_initializer(glider))
    for g in range(6):
        a.update_all(g)
        b.update_all(g, workers=4)
    alive = lambda s: s.alive
    assert np.array_equal(a.snapshot(6, alive, dtype=bool), b.snapshot(6, alive, dtype=bool))


def test_snapshot_shape_and_fill() -> None:
    torus = Torus.build(Tiling.ORTHOGONAL, (2, 3), 0, _static)
    snap = torus.snapshot(0, lambda s: s.value, dtype=np.int64)
    assert snap.shape == (2, 3)
    assert snap.tolist() == [[0, 1, 2], [1, 2, 3]]
    missing = torus.snapshot(5, fill=-1)
    assert missing.tolist() == [[-1, -1, -1], [-1, -1, -1]]


def test_lines_render_rows_and_slices() -> None:
    torus = Torus.build(Tiling.ORTHOGONAL, (2, 3), 0, _static)
    assert torus.lines(0) == ["012", "123"]
    assert torus.lines(1) == ["???", "???"]
    cube = Torus.build(Tiling.ORTHOGONAL, (2, 2, 2), 0, _static)
    assert cube.lines(0) == ["[:, :, 0]", "01", "12", "[:, :, 1]", "12", "23"]


def test_info_logs_each_line(caplog) -> None:
    torus = Torus.build(Tiling.MOORE, (3, 3), 0, pattern_initializer([(1, 1)]))
    with caplog.at_level(logging.INFO, logger="quantized_interactions.torus"):
        torus.info(0)
    assert "Generation: 0" in caplog.text
    assert "Line: [ # ]" in caplog.text


def test_neighbor_indices_match_cells() -> None:
    torus = Torus.build(Tiling.ORTHOGONAL, (3, 3), 0, _static)
    idx = torus.neighbor_indices()
    assert len(idx) == 9
    assert sorted(idx[0]) == sorted([1, 2, 3, 6])


def test_index_of_foreign_cell() -> None:
    a = Torus.build(Tiling.ORTHOGONAL, (3,), 0, _static)
    b = Torus.build(Tiling.ORTHOGONAL, (3,), 0, _static)
    with pytest.raises(KeyError):
        a.index_of(b.cells[0])


def test_conway_state_is_usable_as_payload() -> None:
    torus = Torus.build(Tiling.MOORE, (3, 3), 0, lambda c: Conway(False))
    torus.update_all(0)
    assert all(not cell.state(1).alive for cell in torus.cells)
