import pytest

from stacktrack.errors import OutOfSegment
from stacktrack.model import StackSegment
from stacktrack.window import AddressWindow

SP_INIT = 0x7FFFEFFC


def _small_segment() -> StackSegment:
    # Room for 16 words below the initial pointer.
    return StackSegment(base_address=0x1100, limit_address=0x1000, initial_pointer=0x1040, word_size=4)


def test_rows_count_down_from_high_water_mark():
    window = AddressWindow(StackSegment())
    assert window.high_water_mark == SP_INIT
    assert window.row_count == 36
    assert window.row_for_address(SP_INIT) == 0
    assert window.row_for_address(SP_INIT - 4) == 1
    assert window.address_for_row(3) == SP_INIT - 12


def test_unaligned_addresses_round_down_to_their_word():
    window = AddressWindow(StackSegment())
    assert window.row_for_address(SP_INIT + 3) == 0
    assert window.row_for_address(SP_INIT - 1) == 1
    assert window.row_for_address(SP_INIT - 5) == 2
    assert window.column_for_address(SP_INIT) == 3
    assert window.column_for_address(SP_INIT + 3) == 0


@pytest.mark.parametrize("address", [0x10040000, 0x10000000, 0x80000000, 0x7FFFFFFD])
def test_addresses_outside_the_segment_are_rejected(address):
    window = AddressWindow(StackSegment())
    with pytest.raises(OutOfSegment):
        window.row_for_address(address)
    assert window.row_count == 36
    assert window.high_water_mark == SP_INIT


def test_partial_word_at_the_segment_limit_is_rejected_without_growth():
    window = AddressWindow(StackSegment())
    with pytest.raises(OutOfSegment):
        window.row_for_address(0x10040001)
    assert window.row_count == 36


def test_resolving_beyond_the_window_grows_it_with_lookahead():
    window = AddressWindow(StackSegment())
    address = SP_INIT - 40 * 4
    assert window.row_for_address(address) == 40
    assert window.row_count == 40 + 10


def test_growth_never_renumbers_existing_rows():
    window = AddressWindow(StackSegment())
    addresses = [SP_INIT, SP_INIT - 4, SP_INIT - 60, SP_INIT - 139]
    before = [window.row_for_address(addr) for addr in addresses]
    window.row_for_address(SP_INIT - 400)
    window.grow(25)
    assert [window.row_for_address(addr) for addr in addresses] == before


def test_grow_is_capped_by_the_segment():
    window = AddressWindow(_small_segment(), initial_row_count=10)
    assert window.max_rows() == 16
    assert window.grow(10) == 6
    assert window.row_count == 16
    assert window.grow(5) == 0
    assert window.grow(0) == 0
    assert window.row_count == 16


def test_initial_rows_are_truncated_to_capacity():
    window = AddressWindow(_small_segment(), initial_row_count=36)
    assert window.row_count == 16


def test_overshoot_adds_rows_at_the_top():
    window = AddressWindow(StackSegment())
    assert window.row_for_address(SP_INIT + 8) == 0
    assert window.high_water_mark == SP_INIT + 8
    assert window.row_count == 38
    assert window.row_for_address(SP_INIT) == 2


def test_overshoot_stops_at_the_segment_base():
    segment = StackSegment()
    window = AddressWindow(segment)
    assert window.row_for_address(segment.base_address) == 0
    assert window.high_water_mark == segment.base_address
    assert window.row_count == 36 + (segment.base_address - SP_INIT) // 4
    with pytest.raises(OutOfSegment):
        window.row_for_address(segment.base_address + 4)
    assert window.high_water_mark == segment.base_address


def test_reanchor_restores_the_initial_window():
    window = AddressWindow(StackSegment())
    window.row_for_address(SP_INIT + 64)
    window.row_for_address(SP_INIT - 800)
    window.reanchor(SP_INIT, 36)
    assert window.high_water_mark == SP_INIT
    assert window.row_count == 36
    assert window.covers(SP_INIT - 35 * 4)
    assert not window.covers(SP_INIT - 36 * 4)


def test_reanchor_outside_the_segment_falls_back_to_the_initial_pointer():
    window = AddressWindow(StackSegment())
    window.row_for_address(SP_INIT - 800)
    assert window.reanchor(0x10010000, 36) == SP_INIT
    assert window.high_water_mark == SP_INIT
    assert window.row_count == 36
    assert window.max_rows() > 0
    assert window.reanchor(SP_INIT - 64, 36) == SP_INIT - 64
