"""Tests for residue detection and dipole balancing."""

import numpy as np
import pytest
import torch

from phasecut.core.flags import Flag, PixelFlags, Residue
from phasecut.core.residues import (
    DEFAULT_TOLERANCE,
    balance_dipoles,
    compute_residues,
    find_dipole_partner,
)


class TestComputeResidues:
    """Tests for compute_residues()."""

    def test_positive_block(self, positive_block):
        flags = PixelFlags(positive_block.shape)

        n = compute_residues(torch.from_numpy(positive_block), flags)

        assert n == 1
        assert flags.residues == [Residue(1, 1, 1)]
        assert flags.at(1, 1).is_positive_residue

    def test_negative_block(self, negative_block):
        flags = PixelFlags(negative_block.shape)

        n = compute_residues(torch.from_numpy(negative_block), flags)

        assert n == 1
        assert flags.residues == [Residue(1, 1, -1)]
        assert flags.at(1, 1).is_negative_residue

    def test_zero_circulation_block(self):
        phase = np.zeros((4, 4))
        phase[1:3, 1:3] = [[0.2, 0.5], [0.4, 0.9]]
        flags = PixelFlags(phase.shape)

        assert compute_residues(torch.from_numpy(phase), flags) == 0
        assert flags.residues == []

    def test_constant_grid(self, constant_phase):
        flags = PixelFlags(constant_phase.shape)

        assert compute_residues(torch.from_numpy(constant_phase), flags) == 0

    def test_smooth_surface(self, sheared_surface, wrap_np):
        wrapped = wrap_np(sheared_surface)
        flags = PixelFlags(wrapped.shape)

        assert compute_residues(torch.from_numpy(wrapped), flags) == 0

    def test_blocks_touching_border_skipped(self):
        # Same block as the positive fixture, but anchored on the border
        phase = np.zeros((4, 4))
        phase[0, 0] = 2.0
        phase[1, 0] = 1.4
        phase[1, 1] = 0.7
        flags = PixelFlags(phase.shape)

        assert compute_residues(torch.from_numpy(phase), flags) == 0

    def test_blocks_touching_branch_cut_skipped(self, positive_block):
        flags = PixelFlags(positive_block.shape)
        flags.mark_branch_cut(2, 2)

        assert compute_residues(torch.from_numpy(positive_block), flags) == 0
        assert not flags.at(1, 1).is_residue

    def test_redetection_is_idempotent(self, positive_block):
        flags = PixelFlags(positive_block.shape)
        phase = torch.from_numpy(positive_block)

        compute_residues(phase, flags)
        n = compute_residues(phase, flags)

        assert n == 1
        assert len(flags.residues) == 1

    def test_redetection_clears_stale_residues(self, positive_block):
        flags = PixelFlags(positive_block.shape)
        compute_residues(torch.from_numpy(positive_block), flags)

        compute_residues(torch.zeros(4, 4, dtype=torch.float64), flags)

        assert flags.residues == []
        assert not flags.mask(Flag.RESIDUE).any()

    def test_tolerance(self, positive_block):
        """An integral within the tolerance is not a residue."""
        flags = PixelFlags(positive_block.shape)

        assert compute_residues(torch.from_numpy(positive_block), flags, tolerance=4.0) == 0

    def test_row_major_order(self):
        phase = np.zeros((8, 8))
        # The block at [4, 4] also induces a negative residue on its left,
        # the one at [1, 1] does not because that neighbour touches the border
        for row, col in [(4, 4), (1, 1)]:
            phase[row, col] = 2.0
            phase[row + 1, col] = 1.4
            phase[row + 1, col + 1] = 0.7
        flags = PixelFlags(phase.shape)

        compute_residues(torch.from_numpy(phase), flags)

        assert flags.residues == [
            Residue(1, 1, 1),
            Residue(4, 3, -1),
            Residue(4, 4, 1),
        ]

    def test_shape_mismatch(self):
        flags = PixelFlags((5, 5))
        with pytest.raises(RuntimeError, match="does not match"):
            compute_residues(torch.zeros(4, 4, dtype=torch.float64), flags)

    def test_default_tolerance(self):
        assert DEFAULT_TOLERANCE == 1e-3


class TestFindDipolePartner:
    """Tests for find_dipole_partner()."""

    def test_right_preferred_over_below(self):
        flags = PixelFlags((6, 6))
        flags.add_residue(2, 2, 1)
        flags.add_residue(2, 3, -1)
        flags.add_residue(3, 2, -1)

        assert find_dipole_partner(flags, 2, 2) == (2, 3)

    def test_below(self):
        flags = PixelFlags((6, 6))
        flags.add_residue(2, 2, -1)
        flags.add_residue(3, 2, 1)

        assert find_dipole_partner(flags, 2, 2) == (3, 2)

    def test_same_charge_not_partner(self):
        flags = PixelFlags((6, 6))
        flags.add_residue(2, 2, 1)
        flags.add_residue(2, 3, 1)

        assert find_dipole_partner(flags, 2, 2) is None

    def test_not_a_residue(self):
        assert find_dipole_partner(PixelFlags((6, 6)), 2, 2) is None


class TestBalanceDipoles:
    """Tests for balance_dipoles()."""

    def test_horizontal_dipole(self):
        flags = PixelFlags((6, 6))
        flags.add_residue(2, 2, 1)
        flags.add_residue(2, 3, -1)

        n = balance_dipoles(flags)

        assert n == 1
        assert flags.residues == []
        assert not flags.mask(Flag.RESIDUE).any()
        assert flags.branch_cuts == [(2, 3)]

    def test_dipole_on_first_interior_row(self):
        flags = PixelFlags((6, 6))
        flags.add_residue(1, 1, -1)
        flags.add_residue(1, 2, 1)

        assert balance_dipoles(flags) == 1
        assert flags.residues == []

    def test_unpaired_residues_remain(self):
        flags = PixelFlags((8, 8))
        flags.add_residue(1, 1, 1)
        flags.add_residue(1, 2, -1)
        flags.add_residue(4, 4, 1)
        flags.add_residue(6, 1, -1)

        assert balance_dipoles(flags) == 1
        assert flags.residues == [Residue(4, 4, 1), Residue(6, 1, -1)]

    def test_each_residue_paired_once(self):
        flags = PixelFlags((6, 6))
        flags.add_residue(2, 1, 1)
        flags.add_residue(2, 2, -1)
        flags.add_residue(2, 3, 1)

        assert balance_dipoles(flags) == 1
        assert flags.residues == [Residue(2, 3, 1)]

    def test_second_pass_balances_nothing(self):
        flags = PixelFlags((8, 8))
        flags.add_residue(1, 1, 1)
        flags.add_residue(2, 1, -1)
        flags.add_residue(4, 3, -1)
        flags.add_residue(4, 4, 1)
        flags.add_residue(6, 6, 1)

        assert balance_dipoles(flags) == 2
        assert balance_dipoles(flags) == 0
        assert flags.residues == [Residue(6, 6, 1)]

    def test_no_residues(self):
        assert balance_dipoles(PixelFlags((5, 5))) == 0
