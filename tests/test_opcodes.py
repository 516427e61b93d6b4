import pytest
from hypothesis import given, settings
from hypothesis.strategies import composite
from hypothesis import strategies as st

from stackvm.core.opcodes import (
    OPCODE_NAMES,
    Opcode,
    disassemble,
    format_instruction,
    get_operand_count,
)
from stackvm.programs import add_and_print_program, fibonacci_program

# Any integer, known opcode or not
code_strategy = st.lists(st.integers(min_value=-50, max_value=50), max_size=200)


# Well-formed streams: each known opcode followed by exactly its operands
@composite
def generate_instruction_stream(draw):
    elements = []
    length = draw(st.integers(min_value=0, max_value=60))
    for _ in range(length):
        opcode = draw(st.sampled_from(list(Opcode)))
        elements.append(int(opcode))
        for _ in range(get_operand_count(opcode)):
            elements.append(draw(st.integers(min_value=-1000, max_value=1000)))
    return elements


valid_stream_strategy = generate_instruction_stream()


def test_opcode_numbering():
    """Opcode values start at 1 and follow the instruction table order."""
    assert Opcode.ADD == 1
    assert Opcode.GT == 6
    assert Opcode.CONST == 11
    assert Opcode.HALT == 18
    assert Opcode.RET == 20
    assert OPCODE_NAMES[19] == "CALL"
    assert len(OPCODE_NAMES) == 20


def test_operand_counts():
    assert get_operand_count(Opcode.ADD) == 0
    assert get_operand_count(Opcode.CONST) == 1
    assert get_operand_count(Opcode.GSTORE) == 1
    assert get_operand_count(Opcode.GLOAD) == 0
    assert get_operand_count(Opcode.CALL) == 2
    assert get_operand_count(0) == 0
    assert get_operand_count(255) == 0


def test_disassemble_add_program():
    code, _ = add_and_print_program(2, 3)
    assert disassemble(code) == [
        ("CONST", 11, [2], 0),
        ("CONST", 11, [3], 2),
        ("ADD", 1, [], 4),
        ("PRINT", 16, [], 5),
        ("HALT", 18, [], 6),
    ]


def test_disassemble_fibonacci_entry():
    """The main routine of the demo starts at its entry offset."""
    code, entry = fibonacci_program(6)
    operations = {offset: (name, operands) for name, _, operands, offset in disassemble(code)}
    assert operations[entry] == ("CONST", [6])
    assert operations[entry + 2] == ("CALL", [0, 1])
    assert operations[0] == ("LOAD", [-3])


def test_disassemble_unknown_opcode():
    assert disassemble([0, 99, 18]) == [
        ("UNKNOWN_0", 0, [], 0),
        ("UNKNOWN_99", 99, [], 1),
        ("HALT", 18, [], 2),
    ]


def test_disassemble_truncated_operands():
    """A stream cut off mid-instruction keeps whatever operands are present."""
    assert disassemble([19, 4]) == [("CALL", 19, [4], 0)]
    assert disassemble([11]) == [("CONST", 11, [], 0)]


def test_disassemble_empty():
    assert disassemble([]) == []


def test_format_instruction():
    assert format_instruction(("CALL", 19, [0, 1], 40)) == "40: CALL 0 1"
    assert format_instruction(("HALT", 18, [], 4), width=3) == "  4: HALT"


@settings(max_examples=200, deadline=None)
@given(code=code_strategy)
def test_disassemble_does_not_crash_random_streams(code):
    """
    Test that disassemble handles arbitrary integer sequences without crashing.
    """
    try:
        disassemble(code)
    except Exception as e:
        pytest.fail(f"disassemble raised unexpected exception {type(e).__name__}: {e} on input {code}")


@settings(max_examples=200, deadline=None)
@given(code=code_strategy)
def test_disassemble_covers_every_value(code):
    """Offsets are increasing and every value belongs to exactly one operation."""
    operations = disassemble(code)
    consumed = 0
    for _, value, operands, offset in operations:
        assert offset == consumed
        assert code[offset] == value
        consumed += 1 + len(operands)
    assert consumed == len(code)


@settings(max_examples=200, deadline=None)
@given(code=valid_stream_strategy)
def test_disassemble_valid_streams(code):
    """
    Test that well-formed streams decode to known names with full operand lists.
    """
    for name, value, operands, _ in disassemble(code):
        assert name == OPCODE_NAMES[value]
        assert len(operands) == get_operand_count(value)
