import pytest

from stacktrack.errors import StackTrackError, UnmatchedReturn, UnresolvedSymbol
from stacktrack.frames import CallFrameTracker
from stacktrack.model import InstructionDecoded
from stacktrack.symbols import SymbolTable

FACT = 0x00400040
HELPER = 0x00400080


def _frames() -> CallFrameTracker:
    return CallFrameTracker(SymbolTable({"fact": FACT, "helper": HELPER}))


def _jal(target: int, address: int = 0x00400000) -> InstructionDecoded:
    return InstructionDecoded("jal", (target,), address)


def _jr(address: int = 0x00400100) -> InstructionDecoded:
    return InstructionDecoded("jr", ("$ra",), address)


def test_store_sets_pending_register():
    frames = _frames()
    assert frames.on_instruction(InstructionDecoded("sw", ("$a0", 0, "$sp"), 0x00400000))
    assert frames.take_pending() == ("$a0", "")


@pytest.mark.parametrize("mnemonic", ["sw", "sh", "sb", "sc", "SW"])
def test_every_store_mnemonic_is_tracked(mnemonic):
    frames = _frames()
    assert frames.on_instruction(InstructionDecoded(mnemonic, ("$t1",), 0x00400000))
    assert frames.pending.register == "$t1"


def test_register_numbers_are_named():
    frames = _frames()
    frames.on_instruction(InstructionDecoded("sw", (31, -4, 29), 0x00400000))
    assert frames.pending.register == "$ra"


def test_pending_is_cleared_after_take():
    frames = _frames()
    frames.on_instruction(InstructionDecoded("sw", ("$s0",), 0x00400000))
    frames.on_instruction(_jal(FACT))
    assert frames.take_pending() == ("$s0", "fact (1)")
    assert frames.take_pending() == ("", "")
    assert frames.pending.is_empty()


def test_untracked_mnemonics_are_ignored():
    frames = _frames()
    assert not frames.on_instruction(InstructionDecoded("addi", ("$sp", "$sp", -8), 0x00400000))
    assert frames.pending.is_empty()


def test_repeated_calls_count_active_invocations():
    frames = _frames()
    labels = []
    for k in range(3):
        frames.on_instruction(_jal(FACT, 0x00400000 + 4 * k))
        labels.append(frames.take_pending()[1])
    assert labels == ["fact (1)", "fact (2)", "fact (3)"]
    assert frames.active_calls() == {"fact": 3}
    assert frames.call_depth() == 3


def test_return_decrements_the_matching_label():
    frames = _frames()
    frames.on_instruction(_jal(FACT))
    frames.on_instruction(_jal(HELPER, 0x00400050))
    frames.on_instruction(_jr())
    assert frames.active_calls() == {"fact": 1, "helper": 0}
    frames.on_instruction(_jr())
    assert frames.active_calls() == {"fact": 0, "helper": 0}
    assert frames.call_depth() == 0


def test_return_with_empty_stack_is_reported_and_harmless():
    frames = _frames()
    frames.on_instruction(_jal(FACT))
    frames.on_instruction(_jr())
    with pytest.raises(UnmatchedReturn):
        frames.on_instruction(_jr())
    assert frames.active_calls() == {"fact": 0}


def test_call_to_unknown_target_skips_frame_bookkeeping():
    frames = _frames()
    with pytest.raises(UnresolvedSymbol):
        frames.on_instruction(_jal(0x00400999))
    assert frames.call_depth() == 1
    assert frames.active_calls() == {}
    assert frames.pending.frame_label is None
    frames.on_instruction(_jr())
    assert frames.call_depth() == 0
    assert frames.active_calls() == {}


def test_plain_jump_does_no_bookkeeping():
    frames = _frames()
    assert frames.on_instruction(InstructionDecoded("j", (FACT,), 0x00400000))
    assert frames.call_depth() == 0
    assert frames.pending.is_empty()
    with pytest.raises(UnresolvedSymbol):
        frames.on_instruction(InstructionDecoded("j", (0x00400004,), 0x00400000))


def test_malformed_operands_raise_tracking_errors():
    frames = _frames()
    with pytest.raises(StackTrackError):
        frames.on_instruction(InstructionDecoded("jal", (), 0x00400000))
    with pytest.raises(StackTrackError):
        frames.on_instruction(InstructionDecoded("jal", ("fact",), 0x00400000))
    with pytest.raises(StackTrackError):
        frames.on_instruction(InstructionDecoded("sw", (40,), 0x00400000))


def test_reset_forgets_calls_and_pending_data():
    frames = _frames()
    frames.on_instruction(_jal(FACT))
    frames.on_instruction(InstructionDecoded("sw", ("$ra",), 0x00400044))
    frames.reset()
    assert frames.call_depth() == 0
    assert frames.active_calls() == {}
    assert frames.pending.is_empty()
